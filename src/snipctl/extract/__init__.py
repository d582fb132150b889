"""Literate document extraction: prose, code and expected-output annotations."""

from .model import Block, CodeBlock, Document, ExtractionAnomaly, LineRange, ProseBlock, anomaly_payload, block_payload
from .scanner import annotation_text, extract

__all__ = [
    "Block",
    "CodeBlock",
    "Document",
    "ExtractionAnomaly",
    "LineRange",
    "ProseBlock",
    "annotation_text",
    "anomaly_payload",
    "block_payload",
    "extract",
]
