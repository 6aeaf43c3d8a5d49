"""Test suite for the loco-ws package.

Unit tests cover template resolution, scenario parsing and step
compilation; session tests run against transport doubles and a
loopback WebSocket server.
"""
