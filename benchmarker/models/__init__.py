"""Data models for Benchmarker."""
from benchmarker.models.cloud import CloudConfig, WriteFile
from benchmarker.models.pipeline import Pipeline, PipelineBlock, PipelineJob
from benchmarker.models.provider import ProviderDescriptor

__all__ = [
    'CloudConfig',
    'WriteFile',
    'Pipeline',
    'PipelineBlock',
    'PipelineJob',
    'ProviderDescriptor',
]
