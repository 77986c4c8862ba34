"""Shared realtime building blocks for the ByteLearn backend."""
