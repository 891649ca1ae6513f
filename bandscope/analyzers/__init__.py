"""
Pipeline stages.

Single-track: envelope -> beats, spectral -> classifier -> summary.
Two-track: interference -> eq.
"""

from bandscope.analyzers.beats import BeatDetector
from bandscope.analyzers.classifier import ContentClassifier
from bandscope.analyzers.envelope import EnvelopeAnalyzer
from bandscope.analyzers.eq import EQSuggestionEngine
from bandscope.analyzers.interference import InterferenceAnalyzer, describe_interference
from bandscope.analyzers.spectral import SpectralAnalyzer, SpectralFeatures, STFTKernel
from bandscope.analyzers.summary import SummaryGenerator

__all__ = [
    "BeatDetector",
    "ContentClassifier",
    "EnvelopeAnalyzer",
    "EQSuggestionEngine",
    "InterferenceAnalyzer",
    "describe_interference",
    "SpectralAnalyzer",
    "SpectralFeatures",
    "STFTKernel",
    "SummaryGenerator",
]
