"""
Core application layer.

The `AgentStreamApp` context owns the engine, the flow tree and the settings
document. `commands` exposes its operations as flat request/response calls,
and `EventBridge` relays engine notifications outward.
"""
