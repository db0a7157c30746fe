"""JSON-RPC servers exposing the assistant's tools."""
