"""Declarative WebSocket session engine.

The `loco_ws` package compiles YAML-described client scenarios into
executable sessions and drives them over a single WebSocket connection.

Key features:
- scenario steps (`connect`, `send`, `think`) validated as a tagged
  union at load time;
- late template resolution of payloads with `{{var}}` interpolation and
  `{{ $func(args) }}` function calls;
- strictly sequential session execution with deterministic cleanup;
- lifecycle and latency events published to a pluggable emitter;
- optional code-defined functions evaluated in an isolated namespace.
"""
