"""
Integration tests for pairwise matching.
"""

import numpy as np
import pytest

from dupematch.exceptions import SkipListError
from dupematch.models import (
    DuplicatePair,
    FingerprintConfig,
    ImageRecord,
    MatchMethod,
    MatchOptions,
    MatchProgress,
    STAGE_COMPARING,
    STAGE_FINGERPRINTING,
    make_pair_key,
)
from dupematch.scanner import (
    compare_fingerprints,
    compute_fingerprints,
    fingerprint_image,
    find_duplicates,
    find_duplicates_report,
    iter_matches,
    sort_pairs,
)
from dupematch.skiplist import MemorySkipListStore, skip_duplicate_pair


def _pick(records, *names):
    return [records[name] for name in names]


class FailingStore(MemorySkipListStore):
    """Store whose reads always fail."""

    def read(self):
        raise SkipListError("disk on fire")


class TestFindDuplicates:
    """Test find_duplicates function."""

    def test_exact_copy(self, records):
        pairs = find_duplicates(_pick(records, 'original', 'copy'),
                                skip_list=MemorySkipListStore(), show_progress=False)
        assert len(pairs) == 1
        assert (pairs[0].id_a, pairs[0].id_b) == ('original', 'copy')
        assert pairs[0].similarity == 100.0
        assert pairs[0].method == MatchMethod.EXACT

    def test_batch_reports_only_the_duplicate(self, records):
        pairs = find_duplicates(_pick(records, 'original', 'unrelated', 'copy'),
                                skip_list=MemorySkipListStore(), show_progress=False)
        assert [p.key for p in pairs] == [make_pair_key('original', 'copy')]

    def test_pairs_sorted_by_similarity(self, records):
        pairs = find_duplicates(_pick(records, 'rotated', 'resized', 'original', 'copy'),
                                skip_list=MemorySkipListStore(), show_progress=False)
        similarities = [p.similarity for p in pairs]
        assert similarities == sorted(similarities, reverse=True)
        assert pairs[0].similarity == 100.0

    def test_ids_in_input_order(self, records):
        pairs = find_duplicates(_pick(records, 'copy', 'original'),
                                skip_list=MemorySkipListStore(), show_progress=False)
        assert (pairs[0].id_a, pairs[0].id_b) == ('copy', 'original')

    def test_fewer_than_two_records(self, records):
        assert find_duplicates([], skip_list=MemorySkipListStore()) == []
        assert find_duplicates(_pick(records, 'original'), skip_list=MemorySkipListStore()) == []

    def test_dict_records(self, sample_images):
        records = [
            {'id': 'a', 'filePath': sample_images['original'], 'fileName': 'a.png'},
            {'id': 'b', 'file_path': sample_images['copy']},
        ]
        pairs = find_duplicates(records, skip_list=MemorySkipListStore(), show_progress=False)
        assert len(pairs) == 1

    def test_same_colour_layout_not_reported(self, records):
        pairs = find_duplicates(_pick(records, 'red', 'blue'),
                                skip_list=MemorySkipListStore(), show_progress=False)
        assert pairs == []

    def test_rotation_detected(self, records):
        pairs = find_duplicates(_pick(records, 'original', 'rotated'),
                                include_rotations=True,
                                skip_list=MemorySkipListStore(), show_progress=False)
        assert len(pairs) == 1
        assert pairs[0].method == MatchMethod.ROTATED
        assert pairs[0].similarity >= 85.0

    def test_rotation_disabled(self, records):
        enabled = find_duplicates(_pick(records, 'original', 'rotated'), similarity_threshold=0,
                                  include_rotations=True,
                                  skip_list=MemorySkipListStore(), show_progress=False)
        disabled = find_duplicates(_pick(records, 'original', 'rotated'), similarity_threshold=0,
                                   include_rotations=False,
                                   skip_list=MemorySkipListStore(), show_progress=False)
        assert disabled[0].method != MatchMethod.ROTATED
        assert disabled[0].similarity < enabled[0].similarity

    def test_basic_variant(self, records):
        pairs = find_duplicates(_pick(records, 'original', 'copy', 'unrelated'), variant='basic',
                                skip_list=MemorySkipListStore(), show_progress=False)
        assert [p.key for p in pairs] == [make_pair_key('original', 'copy')]
        assert pairs[0].method is None

    def test_threshold_is_inclusive(self, records, sample_images):
        config = FingerprintConfig.for_variant('advanced', True)
        similarity = compare_fingerprints(
            fingerprint_image(sample_images['original'], config),
            fingerprint_image(sample_images['unrelated'], config),
        ).similarity
        subset = _pick(records, 'original', 'unrelated')

        at = find_duplicates(subset, similarity_threshold=similarity,
                             skip_list=MemorySkipListStore(), show_progress=False)
        above = find_duplicates(subset, similarity_threshold=float(np.nextafter(similarity, 101)),
                                skip_list=MemorySkipListStore(), show_progress=False)
        assert len(at) == 1
        assert above == []

    def test_invalid_threshold(self, records):
        with pytest.raises(ValueError):
            find_duplicates(_pick(records, 'original', 'copy'), similarity_threshold=101)

    def test_invalid_variant(self, records):
        with pytest.raises(ValueError):
            find_duplicates(_pick(records, 'original', 'copy'), variant='turbo')

    def test_record_without_path(self):
        with pytest.raises(ValueError):
            find_duplicates([{'id': 'a'}, {'id': 'b'}], skip_list=MemorySkipListStore())


class TestDecodeFailures:
    """Records that cannot be decoded are excluded, not fatal."""

    def test_corrupt_file_excluded(self, records):
        report = find_duplicates_report(
            _pick(records, 'original', 'corrupted', 'copy', 'truncated'),
            MatchOptions(show_progress=False),
            skip_list=MemorySkipListStore(),
        )
        assert [p.key for p in report.pairs] == [make_pair_key('original', 'copy')]
        assert set(report.excluded) == {'corrupted', 'truncated'}
        assert report.fingerprinted == 2
        assert report.comparisons == 1

    def test_missing_file_excluded(self, records):
        missing = ImageRecord(id='gone', file_path='/nonexistent/gone.png')
        report = find_duplicates_report(
            [records['original'], missing, records['copy']],
            MatchOptions(show_progress=False),
            skip_list=MemorySkipListStore(),
        )
        assert len(report.pairs) == 1
        assert 'gone' in report.excluded


class TestDuplicateIds:
    """A record is never paired with itself."""

    def test_same_id_twice(self, sample_images):
        records = [ImageRecord('a', sample_images['original']), ImageRecord('a', sample_images['copy'])]
        assert find_duplicates(records, skip_list=MemorySkipListStore(), show_progress=False) == []

    def test_pair_reported_once(self, sample_images):
        records = [
            ImageRecord('a', sample_images['original']),
            ImageRecord('b', sample_images['copy']),
            ImageRecord('a', sample_images['original']),
        ]
        pairs = find_duplicates(records, skip_list=MemorySkipListStore(), show_progress=False)
        assert [p.key for p in pairs] == ['a-b']


class TestSkipList:
    """Test skip-list suppression during matching."""

    def test_skipped_pair_not_reported(self, records):
        store = MemorySkipListStore({make_pair_key('copy', 'original')})
        report = find_duplicates_report(
            _pick(records, 'original', 'copy', 'unrelated'),
            MatchOptions(show_progress=False),
            skip_list=store,
        )
        assert report.pairs == []
        assert report.skipped_pairs == 1
        assert report.comparisons == 2

    def test_skip_is_order_independent(self, records):
        store = MemorySkipListStore()
        store.skip('copy', 'original')
        pairs = find_duplicates(_pick(records, 'original', 'copy'), skip_list=store, show_progress=False)
        assert pairs == []

    def test_global_store_used_by_default(self, records):
        skip_duplicate_pair('original', 'copy')
        assert find_duplicates(_pick(records, 'original', 'copy'), show_progress=False) == []

    def test_unreadable_store_treated_as_empty(self, records):
        pairs = find_duplicates(_pick(records, 'original', 'copy'),
                                skip_list=FailingStore(), show_progress=False)
        assert len(pairs) == 1


class TestProgress:
    """Test progress callbacks."""

    def test_progress_events(self, sample_images):
        records = [ImageRecord(f"img-{i:02d}", sample_images['original']) for i in range(12)]
        calls = []
        pairs = find_duplicates(records, on_progress=lambda done, total: calls.append((done, total)),
                                skip_list=MemorySkipListStore(), show_progress=False)
        assert len(pairs) == 66
        assert calls[0] == (10, 12)
        assert (12, 12) in calls
        assert calls[-1] == (66, 66)

    def test_failing_callback_ignored(self, records):
        def explode(done, total):
            raise RuntimeError("UI went away")

        pairs = find_duplicates(_pick(records, 'original', 'copy'), on_progress=explode,
                                skip_list=MemorySkipListStore(), show_progress=False)
        assert len(pairs) == 1

    def test_compute_fingerprints(self, records):
        calls = []
        fingerprints, excluded = compute_fingerprints(
            _pick(records, 'original', 'corrupted'),
            on_progress=lambda done, total: calls.append((done, total)),
            show_progress=False,
        )
        assert set(fingerprints) == {'original'}
        assert set(excluded) == {'corrupted'}
        assert calls == [(2, 2)]


class TestIterMatches:
    """Test the lazy matching generator."""

    def test_yields_progress_and_pairs(self, records):
        events = list(iter_matches(_pick(records, 'original', 'copy'),
                                   MatchOptions(show_progress=False),
                                   skip_list=MemorySkipListStore()))
        stages = [e.stage for e in events if isinstance(e, MatchProgress)]
        assert stages == [STAGE_FINGERPRINTING, STAGE_COMPARING]
        assert sum(isinstance(e, DuplicatePair) for e in events) == 1

    def test_report_is_return_value(self, records):
        matches = iter_matches(_pick(records, 'original', 'copy'),
                               MatchOptions(show_progress=False),
                               skip_list=MemorySkipListStore())
        with pytest.raises(StopIteration) as exc_info:
            while True:
                next(matches)
        report = exc_info.value.value
        assert len(report.pairs) == 1
        assert report.cancelled is False

    def test_stop_iteration_early(self, records):
        matches = iter_matches(_pick(records, 'original', 'copy', 'resized'),
                               MatchOptions(show_progress=False),
                               skip_list=MemorySkipListStore())
        first_pair = next(e for e in matches if isinstance(e, DuplicatePair))
        matches.close()
        assert first_pair.key == make_pair_key('original', 'copy')

    def test_should_cancel(self, records):
        report = find_duplicates_report(
            _pick(records, 'original', 'copy'),
            MatchOptions(show_progress=False, should_cancel=lambda: True),
            skip_list=MemorySkipListStore(),
        )
        assert report.cancelled is True
        assert report.pairs == []
        assert report.fingerprinted == 0


class TestSortPairs:
    """Test sort_pairs function."""

    def test_stable_for_ties(self):
        pairs = [
            DuplicatePair('a', 'b', 90.0),
            DuplicatePair('c', 'd', 95.0),
            DuplicatePair('e', 'f', 90.0),
        ]
        assert [p.id_a for p in sort_pairs(pairs)] == ['c', 'a', 'e']
