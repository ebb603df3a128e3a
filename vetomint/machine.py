"""The consensus state machine for a single height."""

from __future__ import annotations

from typing import List

from vetomint.model import (
    BlockProposalReceived,
    BroadcastPrecommit,
    BroadcastPrevote,
    BroadcastProposal,
    ConsensusEvent,
    ConsensusResponse,
    HeightInfo,
    Precommit,
    Prevote,
    Timestamp,
    ValidatorIndex,
)
from vetomint.progress import progress
from vetomint.state import ConsensusState


class Vetomint:
    """Runs the consensus for one height, feeding its own broadcasts back."""

    def __init__(self, height_info: HeightInfo) -> None:
        self.state = ConsensusState(height_info)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Vetomint):
            return NotImplemented
        return self.state == other.state

    def __repr__(self) -> str:
        return f"Vetomint(state={self.state!r})"

    @property
    def height_info(self) -> HeightInfo:
        return self.state.height_info

    def _own_index(self) -> ValidatorIndex:
        index = self.state.height_info.this_node_index
        if index is None:
            raise ValueError("a non-validator node cannot sign its own messages")
        return index

    def progress(
        self, event: ConsensusEvent, timestamp: Timestamp
    ) -> List[ConsensusResponse]:
        """Apply ``event`` and return every response, including those caused
        by this node receiving its own broadcasts."""
        responses = progress(self.state, event, timestamp)
        final_responses = list(responses)
        while True:
            follow_ups: List[ConsensusResponse] = []
            for response in responses:
                match response:
                    case BroadcastProposal(proposal, valid_round, round):
                        own_event: ConsensusEvent = BlockProposalReceived(
                            proposal=proposal,
                            valid=True,
                            valid_round=valid_round,
                            proposer=self._own_index(),
                            round=round,
                            favor=True,
                        )
                    case BroadcastPrevote(proposal, round):
                        own_event = Prevote(
                            proposal=proposal, signer=self._own_index(), round=round
                        )
                    case BroadcastPrecommit(proposal, round):
                        own_event = Precommit(
                            proposal=proposal, signer=self._own_index(), round=round
                        )
                    case _:
                        continue
                follow_ups += progress(self.state, own_event, timestamp)
            if not follow_ups:
                return final_responses
            final_responses += follow_ups
            responses = follow_ups