import pytest

from vetomint.machine import Vetomint
from vetomint.model import (
    BlockProposalReceived,
    BroadcastPrecommit,
    BroadcastPrevote,
    BroadcastProposal,
    ConsensusParams,
    FinalizeBlock,
    HeightInfo,
    Precommit,
    Prevote,
    Start,
)


def make_info(index):
    return HeightInfo(
        validators=[1, 1, 1, 1],
        this_node_index=index,
        timestamp=0,
        consensus_params=ConsensusParams(timeout_ms=100, repeat_round_for_first_leader=1),
        initial_block_candidate=0,
    )


def test_height_info():
    info = make_info(2)
    assert Vetomint(info).height_info == info


def test_normal_1():
    proposer = Vetomint(make_info(0))
    nodes = [Vetomint(make_info(i)) for i in range(1, 4)]

    assert proposer.progress(Start(), 0) == [
        BroadcastProposal(proposal=0, valid_round=None, round=0),
        BroadcastPrevote(proposal=0, round=0),
    ]
    for node in nodes:
        assert node.progress(Start(), 0) == []

    for node in nodes:
        response = node.progress(
            BlockProposalReceived(
                proposal=0, valid=True, valid_round=None, proposer=0, round=0, favor=True
            ),
            1,
        )
        assert response == [BroadcastPrevote(proposal=0, round=0)]

    nodes = [proposer, *nodes]

    for i, node in enumerate(nodes):
        assert node.progress(Prevote(proposal=0, signer=(i + 1) % 4, round=0), 2) == []
        assert node.progress(Prevote(proposal=0, signer=(i + 2) % 4, round=0), 2) == [
            BroadcastPrecommit(proposal=0, round=0)
        ]
        assert node.progress(Prevote(proposal=0, signer=(i + 3) % 4, round=0), 2) == []

    for i, node in enumerate(nodes):
        assert node.progress(Precommit(proposal=0, signer=(i + 1) % 4, round=0), 3) == []
        expected_proof = tuple(x for x in range(4) if x != (i + 3) % 4)
        assert node.progress(Precommit(proposal=0, signer=(i + 2) % 4, round=0), 3) == [
            FinalizeBlock(proposal=0, proof=expected_proof)
        ]


def test_non_validator_cannot_sign():
    node = Vetomint(make_info(None))
    assert node.progress(Start(), 0) == []
    with pytest.raises(ValueError):
        node.progress(
            BlockProposalReceived(
                proposal=0, valid=True, valid_round=None, proposer=0, round=0, favor=True
            ),
            1,
        )


def test_equal_machines_diverge_after_progress():
    a = Vetomint(make_info(1))
    b = Vetomint(make_info(1))
    assert a == b
    a.progress(Start(), 0)
    assert not (a == b)