# vetomint

A Tendermint-style Byzantine fault tolerant consensus state machine for a
single height. The layer beneath it checks and decodes the raw network
messages and passes abstract events in. The machine answers each event with
the responses that the node should act on.

Validators and blocks are plain integer indices within one height. The
caller keeps the mapping from real public keys and blocks to those indices.

## Installing

```
pip install .
```

To run the tests, install the `test` extra and run `pytest`:

```
pip install ".[test]"
pytest
```

## Usage

```python
from vetomint.machine import Vetomint
from vetomint.model import (
    BlockProposalReceived,
    BroadcastPrevote,
    ConsensusParams,
    HeightInfo,
    Start,
)

info = HeightInfo(
    validators=[1, 1, 1, 1],      # voting powers, in leader order
    this_node_index=1,            # None for a non-validator node
    timestamp=0,
    consensus_params=ConsensusParams(timeout_ms=100, repeat_round_for_first_leader=1),
    initial_block_candidate=0,
)
node = Vetomint(info)

node.progress(Start(), 0)         # validator 0 leads round 0, so this returns []
responses = node.progress(
    BlockProposalReceived(
        proposal=0, valid=True, valid_round=None, proposer=0, round=0, favor=True
    ),
    1,
)
assert responses == [BroadcastPrevote(proposal=0, round=0)]
```

## Modules

- `vetomint.model` holds `ConsensusParams` and `HeightInfo`, the event and
  response dataclasses, and the helpers `decide_proposer` and
  `decide_timeout`.
- `vetomint.state` holds `ConsensusState`, which keeps the round, the step
  (`ConsensusStep`), the locked and valid values, the received proposals
  (`Proposal`) and votes (`Vote`), and the timeout schedules. Its methods
  `total_voting_power`, `total_prevotes`, `total_precommits`,
  `prevotes_on_proposal`, `precommits_on_proposal`, `prevotes_on_nil` and
  `precommits_on_nil` add up voting power.
- `vetomint.progress` holds `progress(state, event, timestamp)`. This function
  applies one event to a `ConsensusState` and returns the responses that the
  event triggers.
- `vetomint.machine` holds `Vetomint`, the state machine you normally use.

### Events

`Vetomint.progress(event, timestamp)` takes one of these events. The
timestamp is in milliseconds.

- `Start()` starts round 0.
- `BlockProposalReceived(proposal, valid, valid_round, proposer, round, favor)`
  reports a block proposal that has arrived.
- `SkipRound(round)` asks the machine to pass over a round. It is handled as
  an invalid proposal for that round.
- `BlockCandidateUpdated(proposal)` sets the block that this node proposes
  when it leads a round.
- `Prevote(proposal, signer, round)` and `Precommit(proposal, signer, round)`
  report received votes. A `proposal` of `None` is a vote for nil.
- `Timer()` reports that time has passed, so that scheduled timeouts can fire.

### Responses

`progress` returns a list of responses, which the caller must act on:

- `BroadcastProposal(proposal, valid_round, round)`
- `BroadcastPrevote(proposal, round)`
- `BroadcastPrecommit(proposal, round)`
- `FinalizeBlock(proposal, proof)`. Here `proof` is a tuple of the indices of
  the validators whose precommits decided the block.
- `ViolationReport(violator, description)` is defined as a response type, but
  the machine never produces it.

`Vetomint.progress` also feeds the node's own proposals, prevotes and
precommits back into the machine. The list it returns therefore holds every
response that this feedback produced as well. If feedback is needed while
`this_node_index` is `None`, a `ValueError` is raised.

Once a block is finalized, every later call returns `[FinalizeBlock(...)]`
with the same block and proof.

### Helpers

- `decide_proposer(round, height_info)` gives the index of the leader of a
  round. Validator 0 leads the first `repeat_round_for_first_leader` rounds.
  After that, the leader rotates through the validators.
- `decide_timeout(params, round)` gives the propose timeout, which is
  `params.timeout_ms` for every round.
- `Vetomint.height_info` is a property holding the `HeightInfo` that the
  machine was built with.

## What it does not do

The package does no networking, signing or signature checking. It does not
store or serialize state and does not detect misbehaving validators. It
covers one height only. Moving on to the next height after a
`FinalizeBlock` is up to the caller, who creates a new `Vetomint` with a new
`HeightInfo`.