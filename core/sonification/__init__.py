"""
core/sonification/ — Deterministic code → music pipeline.

Exports:
    Types:      Instrument, Note, Track, TrackEffect, Composition,
                CompositionMetadata, DiffStats, VisualizationData,
                CodeSonification, DiffSonification, VersionPairSonification
    Config:     MappingConfig, DEFAULT_MAPPING_CONFIG, StylePreset,
                get_style, available_styles
    Pipeline:   map_to_notes, compose_code, sonify_diff, sonify_two_versions,
                build_visualization
"""

from core.sonification.composer import compose_code, organize_tracks
from core.sonification.config import DEFAULT_MAPPING_CONFIG, MappingConfig
from core.sonification.diff import parse_diff, sonify_diff, sonify_two_versions, synthesize_diff
from core.sonification.mapper import map_to_notes, tempo_from_complexity
from core.sonification.styles import DEFAULT_STYLE, StylePreset, available_styles, get_style
from core.sonification.types import (
    CodeSonification,
    Composition,
    CompositionMetadata,
    DiffSonification,
    DiffStats,
    Instrument,
    Note,
    Track,
    TrackEffect,
    VersionPairSonification,
    VisualizationData,
)
from core.sonification.visualization import build_visualization

__all__ = [
    # Types
    "Instrument",
    "Note",
    "Track",
    "TrackEffect",
    "Composition",
    "CompositionMetadata",
    "DiffStats",
    "VisualizationData",
    "CodeSonification",
    "DiffSonification",
    "VersionPairSonification",
    # Config
    "MappingConfig",
    "DEFAULT_MAPPING_CONFIG",
    "StylePreset",
    "DEFAULT_STYLE",
    "get_style",
    "available_styles",
    # Pipeline
    "map_to_notes",
    "tempo_from_complexity",
    "organize_tracks",
    "compose_code",
    "parse_diff",
    "sonify_diff",
    "synthesize_diff",
    "sonify_two_versions",
    "build_visualization",
]
