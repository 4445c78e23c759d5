from modules.visibility_scoring.applier import SuggestionApplier, apply_suggestions
from modules.visibility_scoring.engine import VisibilityScoringEngine
from modules.visibility_scoring.extractor import FeatureExtractor
from modules.visibility_scoring.geo_scorer import GeoScorer
from modules.visibility_scoring.metadata import MetadataDeriver
from modules.visibility_scoring.quality_scorer import QualityScorer
from modules.visibility_scoring.suggestions import SuggestionGenerator
from modules.visibility_scoring.understandability import UnderstandabilityScorer
