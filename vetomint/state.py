"""Mutable state of the consensus for a single height."""

from __future__ import annotations

import enum
import functools
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple

from vetomint.model import (
    BlockIdentifier,
    HeightInfo,
    Round,
    Timestamp,
    ValidatorIndex,
    VotingPower,
)


class ConsensusStep(enum.Enum):
    INITIAL = "initial"
    PROPOSE = "propose"
    PREVOTE = "prevote"
    PRECOMMIT = "precommit"


@dataclass(frozen=True)
class Proposal:
    proposal: BlockIdentifier
    valid: bool
    valid_round: Optional[Round]
    round: Round
    proposer: ValidatorIndex
    favor: bool


@functools.total_ordering
@dataclass(frozen=True)
class Vote:
    """A prevote or precommit; a ``None`` proposal is a vote for nil."""

    proposal: Optional[BlockIdentifier]
    signer: ValidatorIndex
    round: Round

    def _key(self) -> Tuple[bool, int, int, int]:
        return (
            self.proposal is not None,
            self.proposal if self.proposal is not None else 0,
            self.signer,
            self.round,
        )

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Vote):
            return NotImplemented
        return self._key() < other._key()


@dataclass
class ConsensusState:
    height_info: HeightInfo
    round: Round = 0
    step: ConsensusStep = ConsensusStep.INITIAL
    locked_value: Optional[BlockIdentifier] = None
    locked_round: Optional[Round] = None
    valid_value: Optional[BlockIdentifier] = None
    valid_round: Optional[Round] = None
    block_candidate: BlockIdentifier = 0
    proposals: Dict[BlockIdentifier, Proposal] = field(default_factory=dict)
    prevotes: Set[Vote] = field(default_factory=set)
    precommits: Set[Vote] = field(default_factory=set)
    propose_timeout_schedules: Set[Tuple[Round, Timestamp]] = field(
        default_factory=set
    )
    precommit_timeout_schedules: Set[Tuple[Round, Timestamp]] = field(
        default_factory=set
    )
    for_the_first_time_1: Set[Round] = field(default_factory=set)
    for_the_first_time_2: Set[Round] = field(default_factory=set)
    finalized: Optional[Tuple[BlockIdentifier, List[ValidatorIndex]]] = None

    def _power(self, votes, round: Round, predicate=lambda vote: True) -> VotingPower:
        validators = self.height_info.validators
        return sum(
            validators[vote.signer]
            for vote in votes
            if vote.round == round and predicate(vote)
        )

    def total_voting_power(self) -> VotingPower:
        return sum(self.height_info.validators)

    def total_prevotes(self, round: Round) -> VotingPower:
        return self._power(self.prevotes, round)

    def total_precommits(self, round: Round) -> VotingPower:
        return self._power(self.precommits, round)

    def prevotes_on_proposal(
        self, round: Round, proposal: BlockIdentifier
    ) -> VotingPower:
        return self._power(self.prevotes, round, lambda v: v.proposal == proposal)

    def precommits_on_proposal(
        self, round: Round, proposal: BlockIdentifier
    ) -> VotingPower:
        return self._power(self.precommits, round, lambda v: v.proposal == proposal)

    def prevotes_on_nil(self, round: Round) -> VotingPower:
        return self._power(self.prevotes, round, lambda v: v.proposal is None)

    def precommits_on_nil(self, round: Round) -> VotingPower:
        return self._power(self.precommits, round, lambda v: v.proposal is None)