"""Height information, consensus events and responses."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple, Union

ValidatorIndex = int
BlockIdentifier = int
Round = int
VotingPower = int
Timestamp = int


@dataclass(frozen=True)
class ConsensusParams:
    """Tunable parameters of the consensus."""

    timeout_ms: int
    repeat_round_for_first_leader: int


@dataclass(frozen=True)
class HeightInfo:
    """Immutable information used to run the consensus for a single height.

    ``validators`` holds voting powers in leader order and is indexed by
    validator index. ``this_node_index`` is ``None`` for a non-validator node.
    """

    validators: Tuple[VotingPower, ...]
    this_node_index: Optional[ValidatorIndex]
    timestamp: Timestamp
    consensus_params: ConsensusParams
    initial_block_candidate: BlockIdentifier

    def __post_init__(self) -> None:
        object.__setattr__(self, "validators", tuple(self.validators))


# Events -------------------------------------------------------------------


@dataclass(frozen=True)
class Start:
    """Signals to start the process."""


@dataclass(frozen=True)
class BlockProposalReceived:
    """The node has received a block proposal."""

    proposal: BlockIdentifier
    valid: bool
    valid_round: Optional[Round]
    proposer: ValidatorIndex
    round: Round
    favor: bool


@dataclass(frozen=True)
class SkipRound:
    """The node wants to skip the given round regardless of proposals."""

    round: Round


@dataclass(frozen=True)
class BlockCandidateUpdated:
    """Updates the block this node wants to propose."""

    proposal: BlockIdentifier


@dataclass(frozen=True)
class Prevote:
    """The node has received a prevote."""

    proposal: Optional[BlockIdentifier]
    signer: ValidatorIndex
    round: Round


@dataclass(frozen=True)
class Precommit:
    """The node has received a precommit."""

    proposal: Optional[BlockIdentifier]
    signer: ValidatorIndex
    round: Round


@dataclass(frozen=True)
class Timer:
    """Time has passed."""


ConsensusEvent = Union[
    Start,
    BlockProposalReceived,
    SkipRound,
    BlockCandidateUpdated,
    Prevote,
    Precommit,
    Timer,
]


# Responses ----------------------------------------------------------------


@dataclass(frozen=True)
class BroadcastProposal:
    proposal: BlockIdentifier
    valid_round: Optional[Round]
    round: Round


@dataclass(frozen=True)
class BroadcastPrevote:
    proposal: Optional[BlockIdentifier]
    round: Round


@dataclass(frozen=True)
class BroadcastPrecommit:
    proposal: Optional[BlockIdentifier]
    round: Round


@dataclass(frozen=True)
class FinalizeBlock:
    proposal: BlockIdentifier
    proof: Tuple[ValidatorIndex, ...] = field(default=())

    def __post_init__(self) -> None:
        object.__setattr__(self, "proof", tuple(self.proof))


@dataclass(frozen=True)
class ViolationReport:
    violator: ValidatorIndex
    description: str


ConsensusResponse = Union[
    BroadcastProposal,
    BroadcastPrevote,
    BroadcastPrecommit,
    FinalizeBlock,
    ViolationReport,
]


def decide_proposer(round: Round, height_info: HeightInfo) -> ValidatorIndex:
    """Return the index of the validator that leads the given round."""
    repeat = height_info.consensus_params.repeat_round_for_first_leader
    if round < repeat:
        return 0
    if not height_info.validators:
        raise ValueError("height has no validators")
    return (round - repeat + 1) % len(height_info.validators)


def decide_timeout(params: ConsensusParams, round: Round) -> Timestamp:
    """Return the timeout in milliseconds for the given round."""
    return params.timeout_ms