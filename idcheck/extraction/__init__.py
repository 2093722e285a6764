from idcheck.extraction.base import BaseExtractor
from idcheck.extraction.extractor import Extractor
from idcheck.extraction.factory import ExtractorFactory
from idcheck.extraction.models import ExtractedFields

__all__ = ["BaseExtractor", "ExtractedFields", "Extractor", "ExtractorFactory"]
