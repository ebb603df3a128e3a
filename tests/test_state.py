import pytest

from vetomint.model import ConsensusParams, HeightInfo
from vetomint.state import ConsensusState, ConsensusStep, Proposal, Vote

VALIDATORS = (5, 7, 11, 13)


def make_state(validators=VALIDATORS):
    info = HeightInfo(
        validators=validators,
        this_node_index=0,
        timestamp=0,
        consensus_params=ConsensusParams(
            timeout_ms=100, repeat_round_for_first_leader=1
        ),
        initial_block_candidate=3,
    )
    return ConsensusState(info)


def test_initial_state():
    state = make_state()
    assert state.round == 0
    assert state.step is ConsensusStep.INITIAL
    assert state.locked_value is None and state.valid_round is None
    assert state.block_candidate == 0
    assert state.finalized is None
    assert state.prevotes == set() and state.proposals == {}


def test_total_voting_power():
    assert make_state().total_voting_power() == sum(VALIDATORS)
    assert make_state(validators=()).total_voting_power() == 0


def test_prevote_tallies():
    state = make_state()
    state.prevotes |= {
        Vote(proposal=2, signer=0, round=0),
        Vote(proposal=2, signer=2, round=0),
        Vote(proposal=None, signer=3, round=0),
        Vote(proposal=2, signer=1, round=1),
    }
    assert state.prevotes_on_proposal(0, 2) == VALIDATORS[0] + VALIDATORS[2]
    assert state.prevotes_on_nil(0) == VALIDATORS[3]
    assert state.total_prevotes(0) == (
        state.prevotes_on_proposal(0, 2) + state.prevotes_on_nil(0)
    )
    assert state.prevotes_on_proposal(1, 2) == VALIDATORS[1]
    assert state.prevotes_on_proposal(0, 9) == 0
    assert state.total_precommits(0) == 0


def test_precommit_tallies():
    state = make_state()
    state.precommits |= {
        Vote(proposal=None, signer=0, round=2),
        Vote(proposal=None, signer=1, round=2),
        Vote(proposal=4, signer=3, round=2),
    }
    assert state.precommits_on_nil(2) == VALIDATORS[0] + VALIDATORS[1]
    assert state.precommits_on_proposal(2, 4) == VALIDATORS[3]
    assert state.total_precommits(2) == (
        state.precommits_on_nil(2) + state.precommits_on_proposal(2, 4)
    )
    assert state.total_prevotes(2) == 0


def test_duplicate_votes_counted_once():
    state = make_state()
    state.prevotes.add(Vote(proposal=1, signer=2, round=0))
    state.prevotes.add(Vote(proposal=1, signer=2, round=0))
    assert state.total_prevotes(0) == VALIDATORS[2]


def test_unknown_signer_rejected():
    state = make_state()
    state.prevotes.add(Vote(proposal=1, signer=len(VALIDATORS), round=0))
    with pytest.raises(IndexError):
        state.total_prevotes(0)


def test_vote_ordering_nil_first():
    votes = [
        Vote(proposal=1, signer=0, round=0),
        Vote(proposal=None, signer=3, round=0),
        Vote(proposal=0, signer=2, round=0),
        Vote(proposal=0, signer=1, round=0),
    ]
    ordered = sorted(votes)
    assert ordered[0].proposal is None
    assert [(v.proposal, v.signer) for v in ordered[1:]] == [(0, 1), (0, 2), (1, 0)]


def test_proposal_value_equality():
    a = Proposal(proposal=1, valid=True, valid_round=None, round=0, proposer=0, favor=True)
    b = Proposal(proposal=1, valid=True, valid_round=None, round=0, proposer=0, favor=True)
    assert a == b
    assert {a: 1}[b] == 1