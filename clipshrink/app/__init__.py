"""Application layer: orchestration, clipboard monitoring and wiring.

- orchestrator: the end-to-end "shrink current clipboard image" operation
- monitor: polling state machine that triggers the orchestrator
- notifications: user-visible outcome sinks
- controller: composition root owning config, monitor and orchestrator
"""
