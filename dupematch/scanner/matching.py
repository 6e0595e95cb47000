"""
Pairwise matching module for the scanner package.

Fingerprints every record once, then compares all unordered pairs
(i < j, in input order). Pairs in the skip-list are never compared; pairs
scoring at or above the threshold are reported, most similar first.

The work is exposed as a generator (iter_matches) yielding MatchProgress
events and DuplicatePair results, so callers get progress and cancellation
by simply stopping iteration. find_duplicates and find_duplicates_report
drain the generator for callers that want a plain list.

Comparisons are O(n^2). That suits curated libraries of up to tens of
thousands of images; there is no LSH bucketing.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Generator, Iterable, Optional, Union

from ..config import (
    COMPARISON_PROGRESS_EVERY,
    FINGERPRINT_PROGRESS_EVERY,
    PROGRESS_BAR_MIN_COMPARISONS,
)
from ..exceptions import DecodeError
from ..models import (
    STAGE_COMPARING,
    STAGE_FINGERPRINTING,
    DuplicatePair,
    FingerprintConfig,
    ImageRecord,
    MatchOptions,
    MatchProgress,
    MatchReport,
    as_image_record,
    make_pair_key,
)
from ..skiplist import SkipListStore, get_skip_list_store
from ..utils.formatters import format_number, format_similarity, format_time_estimate
from ..utils.validators import validate_match_options, validate_records
from .dependencies import HAS_TQDM, _tqdm_class
from .fingerprint import fingerprint_image
from .similarity import compare_fingerprints


logger = logging.getLogger(__name__)

MatchEvent = Union[MatchProgress, DuplicatePair]


def _prepare(records: Iterable[Any], options: MatchOptions) -> list[ImageRecord]:
    """Validate options and coerce records, raising ValueError on bad input."""
    records = list(records)

    is_valid, error = validate_match_options(options)
    if not is_valid:
        raise ValueError(error)

    is_valid, error = validate_records(records)
    if not is_valid:
        raise ValueError(error)

    return [as_image_record(r) for r in records]


def _cancel_requested(should_cancel: Optional[Callable[[], bool]]) -> bool:
    return bool(should_cancel and should_cancel())


def iter_fingerprints(
    records: list[ImageRecord],
    config: FingerprintConfig,
    fingerprints: dict,
    excluded: dict,
    should_cancel: Optional[Callable[[], bool]] = None,
    show_progress: bool = True,
) -> Generator[MatchProgress, None, bool]:
    """
    Fingerprint records one at a time, filling fingerprints and excluded.

    Records that fail to decode are logged and excluded, never retried.
    A repeated id is fingerprinted only once.

    Yields:
        MatchProgress every few records and once at the end

    Returns:
        True if cancelled before all records were processed
    """
    total = len(records)

    pbar: Optional[Any] = None
    if HAS_TQDM and show_progress and total > 0 and _tqdm_class is not None:
        pbar = _tqdm_class(total=total, desc="Fingerprinting images", unit="img", ncols=80)

    try:
        for done, record in enumerate(records, start=1):
            if _cancel_requested(should_cancel):
                logger.info(f"Fingerprinting cancelled after {format_number(done - 1)} images")
                return True

            if record.id not in fingerprints and record.id not in excluded:
                try:
                    fingerprints[record.id] = fingerprint_image(record.file_path, config)
                except DecodeError as e:
                    logger.warning(f"Could not fingerprint {record.file_name} ({record.id}): {e.reason}")
                    excluded[record.id] = e.reason

            if pbar is not None:
                pbar.update(1)
            if done % FINGERPRINT_PROGRESS_EVERY == 0 or done == total:
                yield MatchProgress(STAGE_FINGERPRINTING, done, total)
    finally:
        if pbar is not None:
            pbar.close()

    return False


def compute_fingerprints(
    records: Iterable[Any],
    config: Optional[FingerprintConfig] = None,
    on_progress: Optional[Callable[[int, int], None]] = None,
    should_cancel: Optional[Callable[[], bool]] = None,
    show_progress: bool = True,
) -> tuple[dict, dict]:
    """
    Fingerprint every record.

    Args:
        records: Image records (ImageRecord, dicts, or objects with id/file_path)
        config: Fingerprint configuration (defaults to the advanced variant)
        on_progress: Optional callback(done, total)
        should_cancel: Optional callable; returning True stops before the next record
        show_progress: Whether to show a tqdm progress bar

    Returns:
        Tuple of (id -> Fingerprint, id -> exclusion reason)
    """
    config = config or FingerprintConfig.for_variant()
    records = [as_image_record(r) for r in records]
    fingerprints: dict = {}
    excluded: dict = {}
    for event in iter_fingerprints(records, config, fingerprints, excluded,
                                   should_cancel=should_cancel, show_progress=show_progress):
        _notify(on_progress, event)
    return fingerprints, excluded


def iter_matches(
    records: Iterable[Any],
    options: Optional[MatchOptions] = None,
    skip_list: Optional[SkipListStore] = None,
) -> Generator[MatchEvent, None, MatchReport]:
    """
    Lazily find duplicate pairs.

    The skip-list is read once, before any comparison; pairs skipped while
    the run is in progress are not suppressed retroactively.

    Args:
        records: Image records in the order pairs should be formed
        options: Matching options (defaults: advanced variant, rotations on)
        skip_list: Store of dismissed pairs (defaults to the global store)

    Yields:
        MatchProgress events and DuplicatePair results in discovery order

    Returns:
        MatchReport with pairs sorted by descending similarity
        (available as StopIteration.value)

    Raises:
        ValueError: if options or records are invalid
    """
    options = options or MatchOptions()
    records = _prepare(records, options)
    report = MatchReport()

    if len(records) < 2:
        return report

    config = options.fingerprint_config
    threshold = options.threshold
    start_time = time.time()

    logger.info(
        f"Computing {config.variant} fingerprints for {format_number(len(records))} images "
        f"({config.raster_size}x{config.raster_size}, rotations: {config.include_rotations})"
    )

    fingerprints: dict = {}
    cancelled = yield from iter_fingerprints(
        records, config, fingerprints, report.excluded,
        should_cancel=options.should_cancel,
        show_progress=options.show_progress,
    )
    report.fingerprinted = len(fingerprints)

    logger.info(
        f"Fingerprints computed: {format_number(len(fingerprints))} of {format_number(len(records))}"
        + (f" ({len(report.excluded)} excluded)" if report.excluded else "")
    )

    if cancelled:
        report.cancelled = True
        return report

    skipped = (skip_list if skip_list is not None else get_skip_list_store()).snapshot()
    logger.info(
        f"Searching for duplicates (threshold {format_similarity(threshold)}, "
        f"{format_number(len(skipped))} skipped pairs)"
    )

    n = len(records)
    total = (n * (n - 1)) // 2
    emitted: set = set()
    visited = 0

    pbar: Optional[Any] = None
    if HAS_TQDM and options.show_progress and total > PROGRESS_BAR_MIN_COMPARISONS and _tqdm_class is not None:
        pbar = _tqdm_class(total=total, desc="Comparing images", unit="cmp", ncols=80)

    try:
        for i in range(n):
            record_a = records[i]
            fp_a = fingerprints.get(record_a.id)

            for j in range(i + 1, n):
                visited += 1
                if visited % COMPARISON_PROGRESS_EVERY == 0:
                    if pbar is not None:
                        pbar.update(COMPARISON_PROGRESS_EVERY)
                    yield MatchProgress(STAGE_COMPARING, visited, total)
                    if _cancel_requested(options.should_cancel):
                        logger.info(f"Comparison cancelled after {format_number(visited)} pairs")
                        report.cancelled = True
                        return _finish(report, start_time)

                record_b = records[j]
                if record_a.id == record_b.id:
                    continue

                pair_key = make_pair_key(record_a.id, record_b.id)
                if pair_key in skipped:
                    report.skipped_pairs += 1
                    continue
                if pair_key in emitted:
                    continue

                fp_b = fingerprints.get(record_b.id)
                if fp_a is None or fp_b is None:
                    continue

                comparison = compare_fingerprints(fp_a, fp_b, chi_square_cap=options.chi_square_cap)
                report.comparisons += 1

                if comparison.similarity >= threshold:
                    pair = DuplicatePair(
                        id_a=record_a.id,
                        id_b=record_b.id,
                        similarity=comparison.similarity,
                        method=comparison.method,
                    )
                    emitted.add(pair_key)
                    report.pairs.append(pair)
                    logger.debug(
                        f"Duplicate [{comparison.method or config.variant}]: {record_a.file_name} <-> "
                        f"{record_b.file_name} ({format_similarity(comparison.similarity)})"
                    )
                    yield pair
    finally:
        if pbar is not None:
            pbar.update(visited % COMPARISON_PROGRESS_EVERY)
            pbar.close()

    if visited % COMPARISON_PROGRESS_EVERY != 0:
        yield MatchProgress(STAGE_COMPARING, visited, total)

    return _finish(report, start_time)


def _finish(report: MatchReport, start_time: float) -> MatchReport:
    """Sort pairs (most similar first, stable) and log the summary."""
    report.pairs = sort_pairs(report.pairs)
    logger.info(
        f"Search finished: {format_number(len(report.pairs))} duplicate pairs, "
        f"{format_number(report.comparisons)} comparisons, "
        f"{format_number(report.skipped_pairs)} skipped, "
        f"in {format_time_estimate(time.time() - start_time)}"
    )
    return report


def sort_pairs(pairs: Iterable[DuplicatePair]) -> list[DuplicatePair]:
    """Sort pairs by descending similarity, keeping discovery order for ties."""
    return sorted(pairs, key=lambda p: p.similarity, reverse=True)


def _notify(on_progress: Optional[Callable[[int, int], None]], event: MatchProgress) -> None:
    """Invoke the progress callback; its failures never affect the result."""
    if on_progress is None:
        return
    try:
        on_progress(event.done, event.total)
    except Exception as e:
        logger.warning(f"Progress callback failed: {e}")


def find_duplicates_report(
    records: Iterable[Any],
    options: Optional[MatchOptions] = None,
    skip_list: Optional[SkipListStore] = None,
) -> MatchReport:
    """
    Run a full matching pass and return the pairs plus run statistics.

    Args:
        records: Image records
        options: Matching options; options.on_progress receives (done, total)
        skip_list: Store of dismissed pairs (defaults to the global store)

    Returns:
        MatchReport including the ids of records that could not be decoded
    """
    options = options or MatchOptions()
    matches = iter_matches(records, options, skip_list)
    while True:
        try:
            event = next(matches)
        except StopIteration as stop:
            return stop.value
        if isinstance(event, MatchProgress):
            _notify(options.on_progress, event)


def find_duplicates(
    records: Iterable[Any],
    similarity_threshold: Optional[float] = None,
    include_rotations: bool = True,
    variant: str = 'advanced',
    on_progress: Optional[Callable[[int, int], None]] = None,
    skip_list: Optional[SkipListStore] = None,
    show_progress: bool = True,
    should_cancel: Optional[Callable[[], bool]] = None,
    chi_square_cap: Optional[float] = None,
) -> list[DuplicatePair]:
    """
    Find duplicate image pairs.

    Args:
        records: Image records (ImageRecord, dicts, or objects with id/file_path)
        similarity_threshold: Inclusive cut-off in percent (default 90 basic, 85 advanced)
        include_rotations: Detect 90/180/270 degree rotated copies (advanced only)
        variant: 'basic' (8x8 average hash) or 'advanced' (32x32 DCT + colour)
        on_progress: Optional callback(done, total), advisory only
        skip_list: Store of dismissed pairs (defaults to the global store)
        show_progress: Whether to show tqdm progress bars
        should_cancel: Optional callable; returning True stops the run early
        chi_square_cap: Override for the histogram normalization constant

    Returns:
        DuplicatePair list sorted by descending similarity

    Example:
        pairs = find_duplicates(cards, similarity_threshold=80)
        for pair in pairs:
            print(pair.id_a, pair.id_b, pair.similarity, pair.method)
    """
    options = MatchOptions(
        similarity_threshold=similarity_threshold,
        include_rotations=include_rotations,
        variant=variant,
        on_progress=on_progress,
        show_progress=show_progress,
        should_cancel=should_cancel,
        chi_square_cap=chi_square_cap,
    )
    return find_duplicates_report(records, options, skip_list).pairs


__all__ = [
    'iter_fingerprints',
    'compute_fingerprints',
    'iter_matches',
    'sort_pairs',
    'find_duplicates_report',
    'find_duplicates',
]
