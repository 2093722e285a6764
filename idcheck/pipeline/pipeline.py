from abc import ABC, abstractmethod
from dataclasses import dataclass

from idcheck.checks.models import Check
from idcheck.extraction.models import ExtractedFields
from idcheck.pipeline.models import PipelineOutcome
from idcheck.policy.models import Verdict
from idcheck.storage.models import RetrievalReference


@dataclass(slots=True)
class PipelineContext:
    check_id: str
    check: Check | None = None
    claimed: bool = False
    reference: RetrievalReference | None = None
    fields: ExtractedFields | None = None
    verdict: Verdict | None = None
    outcome: PipelineOutcome | None = None
    error_message: str = ""


class PipelineStep(ABC):
    @abstractmethod
    def run(self, context: PipelineContext) -> PipelineContext:
        raise NotImplementedError
