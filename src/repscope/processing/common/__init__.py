"""Shared processing helpers."""

from repscope.processing.common.llm import create_model

__all__ = ["create_model"]
