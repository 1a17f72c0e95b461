"""Audit log service: ingest audit events over HTTP and from RabbitMQ, query them back."""

__version__ = "0.1.0"
