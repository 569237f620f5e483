import logging
import re
from typing import Any, Iterable, List, Mapping, Optional, Protocol, Union

from pydantic import BaseModel, ConfigDict, Field

from edifact_models import ExplainedDocument, ParseResult
from edifact_parser import EdifactParser, resolve_delimiters
from field_annotator import TableLike, annotate, resolve_mapping_table

logger = logging.getLogger(__name__)

MESSAGE_HEADER_TAG = 'UNH'
CORRUPTED_HEADER_TAG = 'UXH'
MUTATED_SAMPLE_LIMIT = 2

# Codes that count as "the pipeline noticed the corrupted header".
DETECTION_CODES = frozenset({
    'UNKNOWN_SEGMENT',
    'MALFORMED_SEGMENT_TAG',
    'INVALID_SEGMENT_TAG',
    'UNH_OUT_OF_SEQUENCE',
    'SEGMENT_OUT_OF_MESSAGE_SCOPE',
})


class Sample(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    text: str


class ConformanceResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    ok: bool
    error: Optional[str] = None
    summary: Optional[str] = None


class ConformanceReport(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool
    results: List[ConformanceResult] = Field(default_factory=list)

    @property
    def failures(self) -> List[ConformanceResult]:
        return [result for result in self.results if not result.ok]


class Pipeline(Protocol):
    def parse(self, text: str) -> Any: ...

    def explain(self, parsed: Any) -> Any: ...


class EdifactPipeline:
    """Reference tokenize + validate + annotate pipeline."""

    def __init__(self, mapping_table: TableLike = None, expected_message_type: Optional[str] = None):
        self.mapping_table = resolve_mapping_table(mapping_table)
        self.expected_message_type = expected_message_type

    def parse(self, text: str) -> ParseResult:
        parser = EdifactParser(text, self.expected_message_type, known_tags=self.mapping_table.tags())
        return parser.parse()

    def explain(self, parsed: ParseResult) -> ExplainedDocument:
        return annotate(parsed.document, self.mapping_table)


def mutate_sample(text: str) -> str:
    """
    Applies the two adversarial mutations: every empty placeholder '++' gets a release
    character injected ('+?+'), and every message header tag starting a line or a
    segment is corrupted to 'UXH'.
    """
    d = resolve_delimiters(text.strip())
    data, release, terminator = d.data_separator, d.release_character, d.segment_terminator

    mutated = text.replace(data * 2, data + release + data)
    header_at_segment_start = re.compile(
        r'(^|' + re.escape(terminator) + r'\s*)' + MESSAGE_HEADER_TAG, re.MULTILINE)
    return header_at_segment_start.sub(lambda m: m.group(1) + CORRUPTED_HEADER_TAG, mutated)


def _error_codes(parsed: Any) -> List[str]:
    if isinstance(parsed, Mapping):
        errors = parsed.get('errors')
    else:
        errors = getattr(parsed, 'errors', None)
    if not isinstance(errors, (list, tuple)):
        return []
    codes = []
    for error in errors:
        code = error.get('code') if isinstance(error, Mapping) else getattr(error, 'code', None)
        if code is not None:
            codes.append(str(getattr(code, 'value', code)))
    return codes


def _summarize(parsed: Any) -> str:
    if isinstance(parsed, ParseResult):
        tags = ','.join(segment.tag for segment in parsed.document.segments)
        codes = ','.join(parsed.error_codes) or 'none'
        return f"{len(parsed.document.segments)} segments [{tags}]; errors: {codes}"
    if isinstance(parsed, Mapping):
        return f"keys: {', '.join(list(parsed.keys())[:10])}"
    return type(parsed).__name__


def _coerce_sample(sample: Union[Sample, Mapping[str, Any]]) -> Sample:
    if isinstance(sample, Sample):
        return sample
    return Sample.model_validate(dict(sample))


def run_conformance(pipeline: Pipeline, samples: Iterable[Union[Sample, Mapping[str, Any]]],
                    mutated_prefix: int = MUTATED_SAMPLE_LIMIT) -> ConformanceReport:
    """
    Replays every sample end to end, then feeds mutated copies of the first samples back
    in. A mutated sample passes when the pipeline raises or reports one of DETECTION_CODES.
    One failing sample never stops the batch.
    """
    sample_list = [_coerce_sample(sample) for sample in samples]
    results: List[ConformanceResult] = []

    logger.info(f"=== CONFORMANCE RUN: {len(sample_list)} samples, {min(mutated_prefix, len(sample_list))} mutated ===")
    for sample in sample_list:
        try:
            parsed = pipeline.parse(sample.text)
            pipeline.explain(parsed)
            results.append(ConformanceResult(name=sample.name, ok=True, summary=_summarize(parsed)))
            logger.debug(f"  [PASS] {sample.name}")
        except Exception as e:
            logger.warning(f"  [FAIL] {sample.name}: {e}")
            results.append(ConformanceResult(name=sample.name, ok=False, error=str(e)))

    for sample in sample_list[:mutated_prefix]:
        name = f"{sample.name} (mutated)"
        try:
            parsed = pipeline.parse(mutate_sample(sample.text))
        except Exception as e:
            # A raised failure is as good as a reported structural error here.
            logger.debug(f"  [PASS] {name}: pipeline raised {type(e).__name__}: {e}")
            results.append(ConformanceResult(name=name, ok=True, summary=f"raised {type(e).__name__}"))
            continue

        detected = sorted(DETECTION_CODES.intersection(_error_codes(parsed)))
        if detected:
            logger.debug(f"  [PASS] {name}: detected {detected}")
            results.append(ConformanceResult(name=name, ok=True, summary=f"detected {', '.join(detected)}"))
        else:
            logger.warning(f"  [FAIL] {name}: corrupted header was accepted silently")
            results.append(ConformanceResult(name=name, ok=False, error="Parser did not detect malformed segment tag"))

    success = all(result.ok for result in results)
    logger.info(f"=== CONFORMANCE RUN COMPLETE (success={success}, {len(results)} results) ===")
    return ConformanceReport(success=success, results=results)
