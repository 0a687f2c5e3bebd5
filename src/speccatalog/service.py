"""Top-level entry point: decode, detect, dispatch, and isolate failures.

:class:`SpecificationParsingService` is the only place that knows about every
extractor. It never lets an exception escape: a file that cannot be parsed
comes back as an *error specification* (``errors`` non-empty, no
operations), so one bad file never aborts a batch.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from typing import Optional, Sequence

from speccatalog.exceptions import UnsupportedSpecificationError
from speccatalog.files import decode_content, get_file_name_without_extension
from speccatalog.models import (
    ParsedSpecification,
    ParserConfig,
    SerializedFile,
    SpecificationType,
)
from speccatalog.parser import EXTRACTORS, Extractor, detect_specification_type
from speccatalog.parser.common import new_specification_id
from speccatalog.parser.grpc import extract_grpc
from speccatalog.proto import ProtoParser

logger = logging.getLogger(__name__)


def build_error_specification(file_name: str, message: str) -> ParsedSpecification:
    """The placeholder returned for a file that failed to parse.

    The type is HTTP regardless of the file's real format.
    """
    return ParsedSpecification(
        id=new_specification_id(),
        name=get_file_name_without_extension(file_name),
        type=SpecificationType.HTTP,
        errors=[message],
    )


class SpecificationParsingService:
    """Parse serialized files into :class:`~speccatalog.models.ParsedSpecification` objects.

    The service holds no per-call state, so one instance may serve any
    number of concurrent calls.

    Args:
        config: Parser settings (AsyncAPI protocol hint, metadata preview
            length, async batch width). Defaults to :class:`ParserConfig`.
        proto_parser: Proto-parsing collaborator for ``.proto`` files;
            defaults to :class:`~speccatalog.proto.ProtoSchemaParser`.
        extractors: Override of the type -> extractor table.

    Example::

        service = SpecificationParsingService()
        spec = service.parse_one(serialized_file_from_path("petstore.yaml"))
        if spec.is_error:
            print(spec.errors[0])
    """

    def __init__(
        self,
        config: Optional[ParserConfig] = None,
        proto_parser: Optional[ProtoParser] = None,
        extractors: Optional[dict[SpecificationType, Extractor]] = None,
    ) -> None:
        self.config = config or ParserConfig()
        self._extractors = dict(EXTRACTORS if extractors is None else extractors)
        if proto_parser is not None and SpecificationType.GRPC in self._extractors:
            self._extractors[SpecificationType.GRPC] = functools.partial(
                extract_grpc, proto_parser=proto_parser
            )

    def parse_one(
        self,
        file: SerializedFile,
        specification_type: Optional[SpecificationType] = None,
    ) -> ParsedSpecification:
        """Parse a single file.

        Args:
            file: The file to parse.
            specification_type: Explicit format; skips extension detection.

        Returns:
            The parsed specification, or an error specification when
            decoding, detection, or extraction failed. Never raises.
        """
        try:
            return self._parse(file, specification_type)
        except Exception as exc:
            logger.warning("Failed to parse %s: %s", file.name, exc)
            return build_error_specification(file.name, str(exc) or type(exc).__name__)

    def parse_many(
        self,
        files: Sequence[SerializedFile],
        specification_type: Optional[SpecificationType] = None,
    ) -> list[ParsedSpecification]:
        """Parse *files* one after another, keeping input order.

        A failing file yields an error specification in its slot; the rest
        of the batch is unaffected.
        """
        results = [self._parse_isolated(file, specification_type) for file in files]
        self._log_summary(results)
        return results

    async def parse_many_async(
        self,
        files: Sequence[SerializedFile],
        specification_type: Optional[SpecificationType] = None,
    ) -> list[ParsedSpecification]:
        """Like :meth:`parse_many`, but parses up to ``config.max_workers`` files at once.

        Each parse runs in a worker thread. Results keep input order.
        """
        semaphore = asyncio.Semaphore(self.config.max_workers)

        async def run(file: SerializedFile) -> ParsedSpecification:
            async with semaphore:
                return await asyncio.to_thread(
                    self._parse_isolated, file, specification_type
                )

        results = list(await asyncio.gather(*(run(file) for file in files)))
        self._log_summary(results)
        return results

    def _parse(
        self,
        file: SerializedFile,
        specification_type: Optional[SpecificationType],
    ) -> ParsedSpecification:
        content = decode_content(file)
        kind = specification_type or detect_specification_type(file.name)

        extractor = self._extractors.get(kind)
        if extractor is None:
            raise UnsupportedSpecificationError(
                f"Unsupported specification type: {kind.value}"
            )

        logger.debug("Dispatching %s to the %s extractor", file.name, kind.value)
        return extractor(content, file.name, self.config)

    def _parse_isolated(
        self,
        file: SerializedFile,
        specification_type: Optional[SpecificationType],
    ) -> ParsedSpecification:
        # parse_one already converts failures; this guards against defects in
        # building the error specification itself.
        try:
            return self.parse_one(file, specification_type)
        except Exception as exc:
            logger.warning("Unexpected failure while parsing %s: %s", file.name, exc)
            return build_error_specification(file.name, str(exc) or type(exc).__name__)

    @staticmethod
    def _log_summary(results: list[ParsedSpecification]) -> None:
        failed = sum(1 for spec in results if spec.is_error)
        logger.info("Parsed %d file(s), %d failed", len(results), failed)
