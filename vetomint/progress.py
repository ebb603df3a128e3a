"""State transitions of the consensus state machine."""

from __future__ import annotations

from typing import List, Optional

from vetomint.model import (
    BlockCandidateUpdated,
    BlockIdentifier,
    BlockProposalReceived,
    BroadcastPrecommit,
    BroadcastPrevote,
    BroadcastProposal,
    ConsensusEvent,
    ConsensusResponse,
    FinalizeBlock,
    Precommit,
    Prevote,
    Round,
    SkipRound,
    Start,
    Timer,
    Timestamp,
    decide_proposer,
    decide_timeout,
)
from vetomint.state import ConsensusState, ConsensusStep, Proposal, Vote

# Timestamp recorded for a precommit timeout once enough precommits arrive.
_PRECOMMIT_TIMEOUT = 1000


def progress(
    state: ConsensusState, event: ConsensusEvent, timestamp: Timestamp
) -> List[ConsensusResponse]:
    """Apply ``event`` to ``state`` and return the responses it triggers."""
    if state.finalized is not None:
        proposal, proof = state.finalized
        return [FinalizeBlock(proposal, proof)]

    match event:
        case Start():
            return _start_round(state, 0, timestamp)
        case BlockProposalReceived(
            proposal, valid, valid_round, proposer, round, favor
        ):
            state.proposals[proposal] = Proposal(
                proposal=proposal,
                valid=valid,
                valid_round=valid_round,
                round=round,
                proposer=proposer,
                favor=favor,
            )
            responses: List[ConsensusResponse] = []
            if valid_round is not None:
                responses += _on_4f_non_nil_prevote_in_propose_step(
                    state, round, proposal
                )
            else:
                responses += _on_proposal(state, round, proposal)
            responses += _on_4f_non_nil_prevote_in_prevote_step(state, round, proposal)
            responses += _on_4f_non_nil_precommit(state, round, proposal)
            return responses
        case SkipRound(round):
            return progress(
                state,
                BlockProposalReceived(
                    proposal=0,
                    valid=False,
                    valid_round=None,
                    proposer=0,
                    round=round,
                    favor=False,
                ),
                timestamp,
            )
        case BlockCandidateUpdated(proposal):
            state.block_candidate = proposal
            return []
        case Prevote(proposal, signer, round):
            state.prevotes.add(Vote(proposal=proposal, signer=signer, round=round))
            responses = []
            if proposal is not None:
                responses += _on_4f_non_nil_prevote_in_propose_step(
                    state, round, proposal
                )
                responses += _on_4f_non_nil_prevote_in_prevote_step(
                    state, round, proposal
                )
            else:
                responses += _on_4f_nil_prevote(state, round)
            responses += _on_5f_prevote(state, round, proposal)
            return responses
        case Precommit(proposal, signer, round):
            state.precommits.add(Vote(proposal=proposal, signer=signer, round=round))
            responses = []
            responses += _on_5f_precommit(state, round)
            responses += _on_4f_nil_precommit(state, round, timestamp)
            if proposal is not None:
                responses += _on_4f_non_nil_precommit(state, round, proposal)
            return responses
        case Timer():
            return _on_timer(state, timestamp)
        case _:
            raise TypeError(f"unknown consensus event: {event!r}")


def _on_timer(state: ConsensusState, timestamp: Timestamp) -> List[ConsensusResponse]:
    responses: List[ConsensusResponse] = []
    for round, timeout in sorted(state.propose_timeout_schedules):
        if (
            timestamp >= timeout
            and round == state.round
            and state.step is ConsensusStep.PROPOSE
        ):
            responses.append(BroadcastPrevote(proposal=None, round=round))
            state.step = ConsensusStep.PREVOTE
    for round, timeout in sorted(state.precommit_timeout_schedules):
        if timestamp >= timeout and round == state.round:
            responses += _start_round(state, round + 1, timestamp)
            break
    return responses


def _start_round(
    state: ConsensusState, round: Round, timestamp: Timestamp
) -> List[ConsensusResponse]:
    state.round = round
    state.step = ConsensusStep.PROPOSE
    proposer = decide_proposer(round, state.height_info)
    if proposer == state.height_info.this_node_index:
        proposal = (
            state.valid_value
            if state.valid_value is not None
            else state.block_candidate
        )
        return [
            BroadcastProposal(
                proposal=proposal, valid_round=state.valid_round, round=round
            )
        ]
    state.propose_timeout_schedules.add(
        (round, timestamp + decide_timeout(state.height_info.consensus_params, round))
    )
    return []


def _on_proposal(
    state: ConsensusState, target_round: Round, target_proposal: BlockIdentifier
) -> List[ConsensusResponse]:
    if target_round != state.round:
        return []
    valid_proposer = decide_proposer(target_round, state.height_info)
    proposal = state.proposals.get(target_proposal)
    if proposal is None or proposal.valid_round is not None:
        return []
    if proposal.proposer != valid_proposer or state.step is not ConsensusStep.PROPOSE:
        return []
    state.step = ConsensusStep.PREVOTE
    if proposal.valid and (
        state.locked_value == target_proposal
        or (proposal.favor and state.locked_round is None)
    ):
        return [BroadcastPrevote(proposal=target_proposal, round=target_round)]
    return [BroadcastPrevote(proposal=None, round=target_round)]


def _has_two_thirds(state: ConsensusState, power: int) -> bool:
    return power * 3 > state.total_voting_power() * 2


def _on_4f_non_nil_prevote_in_propose_step(
    state: ConsensusState, target_round: Round, target_proposal: BlockIdentifier
) -> List[ConsensusResponse]:
    if target_round != state.round:
        return []
    valid_proposer = decide_proposer(target_round, state.height_info)
    proposal = state.proposals.get(target_proposal)
    if proposal is None or proposal.valid_round is None:
        return []
    vr = proposal.valid_round
    if not (
        proposal.proposer == valid_proposer
        and _has_two_thirds(state, state.prevotes_on_proposal(vr, target_proposal))
        and state.step is ConsensusStep.PROPOSE
        and vr < target_round
    ):
        return []
    state.step = ConsensusStep.PREVOTE
    locked_below = state.locked_round is None or state.locked_round < vr
    if proposal.valid and (
        (proposal.favor and locked_below)
        or state.locked_value == proposal.proposal
    ):
        return [BroadcastPrevote(proposal=target_proposal, round=target_round)]
    return [BroadcastPrevote(proposal=None, round=target_round)]


def _on_4f_non_nil_prevote_in_prevote_step(
    state: ConsensusState, target_round: Round, target_proposal: BlockIdentifier
) -> List[ConsensusResponse]:
    if target_round != state.round:
        return []
    valid_proposer = decide_proposer(target_round, state.height_info)
    proposal = state.proposals.get(target_proposal)
    if proposal is None:
        return []
    if not (
        proposal.proposer == valid_proposer
        and _has_two_thirds(
            state, state.prevotes_on_proposal(target_round, target_proposal)
        )
        and proposal.valid
        and state.step in (ConsensusStep.PREVOTE, ConsensusStep.PRECOMMIT)
    ):
        return []
    state.valid_value = target_proposal
    state.valid_round = target_round
    if state.step is ConsensusStep.PREVOTE:
        state.locked_value = target_proposal
        state.locked_round = target_round
        state.step = ConsensusStep.PRECOMMIT
        return [BroadcastPrecommit(proposal=target_proposal, round=target_round)]
    return []


def _on_4f_nil_prevote(
    state: ConsensusState, target_round: Round
) -> List[ConsensusResponse]:
    if target_round != state.round:
        return []
    if state.step is ConsensusStep.PREVOTE and _has_two_thirds(
        state, state.prevotes_on_nil(target_round)
    ):
        state.step = ConsensusStep.PRECOMMIT
        return [BroadcastPrecommit(proposal=None, round=state.round)]
    return []


def _on_5f_prevote(
    state: ConsensusState,
    target_round: Round,
    target_proposal: Optional[BlockIdentifier],
) -> List[ConsensusResponse]:
    if target_round != state.round:
        return []
    if not (
        state.step is ConsensusStep.PREVOTE
        and state.total_prevotes(target_round) * 6 > state.total_voting_power() * 5
    ):
        return []
    state.step = ConsensusStep.PRECOMMIT
    if target_proposal is not None and _has_two_thirds(
        state, state.prevotes_on_proposal(target_round, target_proposal)
    ):
        return [BroadcastPrecommit(proposal=target_proposal, round=state.round)]
    return [BroadcastPrecommit(proposal=None, round=target_round)]


def _on_5f_precommit(
    state: ConsensusState, target_round: Round
) -> List[ConsensusResponse]:
    if target_round != state.round:
        return []
    if (
        target_round not in state.for_the_first_time_2
        and state.total_precommits(target_round) * 6 > state.total_voting_power() * 5
    ):
        state.for_the_first_time_2.add(target_round)
        state.precommit_timeout_schedules.add((target_round, _PRECOMMIT_TIMEOUT))
    return []


def _on_4f_nil_precommit(
    state: ConsensusState, target_round: Round, timestamp: Timestamp
) -> List[ConsensusResponse]:
    if target_round != state.round:
        return []
    if state.precommits_on_nil(target_round) * 2 > state.total_voting_power() * 3:
        return _start_round(state, target_round + 1, timestamp)
    return []


def _on_4f_non_nil_precommit(
    state: ConsensusState, target_proposal: BlockIdentifier, target_round: Round
) -> List[ConsensusResponse]:
    valid_proposer = decide_proposer(target_round, state.height_info)
    proposal = state.proposals.get(target_proposal)
    if proposal is None:
        return []
    if not (
        proposal.proposer == valid_proposer
        and proposal.valid
        and _has_two_thirds(
            state, state.precommits_on_proposal(target_round, target_proposal)
        )
    ):
        return []
    proof = [
        vote.signer
        for vote in sorted(state.precommits)
        if vote.round == target_round and vote.proposal == target_proposal
    ]
    state.finalized = (target_proposal, list(proof))
    return [FinalizeBlock(proposal=target_proposal, proof=proof)]