from tabwise.application.services.adaptive_threshold_calculator import AdaptiveThresholdCalculator
from tabwise.application.services.comparison_calculator import ComparisonCalculator
from tabwise.application.services.detection_config import DetectionConfig, load_detection_config
from tabwise.application.services.domain_context_analyzer import DomainContextAnalyzer
from tabwise.application.services.hoarder_scorer import HoarderScorer
from tabwise.application.services.insight_generator import InsightGenerator, render_template
from tabwise.application.services.research_session_clusterer import ResearchSessionClusterer
from tabwise.application.services.serial_opener_detector import SerialOpenerDetector
from tabwise.application.services.value_ranker import ValueRanker

__all__ = [
    "AdaptiveThresholdCalculator",
    "ComparisonCalculator",
    "DetectionConfig",
    "load_detection_config",
    "DomainContextAnalyzer",
    "HoarderScorer",
    "InsightGenerator",
    "render_template",
    "ResearchSessionClusterer",
    "SerialOpenerDetector",
    "ValueRanker",
]
