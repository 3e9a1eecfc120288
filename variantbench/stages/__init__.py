"""
Pipeline stages for variantbench.

This package contains all stage implementations organized by category:
- setup_stages: Provisioning, data staging and argument composition
- calling_stages: DeepVariant execution
- evaluation_stages: hap.py evaluation and metric summary
- output_stages: Run report generation
"""

from .calling_stages import VariantCallingStage
from .evaluation_stages import BenchmarkSummaryStage, EvaluationStage
from .output_stages import ReportStage
from .setup_stages import (
    ArgumentCompositionStage,
    CustomModelStagingStage,
    DataStagingStage,
    ImageProvisioningStage,
    RuntimeProvisioningStage,
)

__all__ = [
    "ArgumentCompositionStage",
    "BenchmarkSummaryStage",
    "CustomModelStagingStage",
    "DataStagingStage",
    "EvaluationStage",
    "ImageProvisioningStage",
    "ReportStage",
    "RuntimeProvisioningStage",
    "VariantCallingStage",
]
