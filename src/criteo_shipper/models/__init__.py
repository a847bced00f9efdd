"""Typed models for inbound analytics events and the outbound Criteo payload."""
