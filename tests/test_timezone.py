import pickle
from copy import copy, deepcopy

import pytest

from civiltime import (
    Instant,
    LocalDateTime,
    TimeZone,
    TimeZoneNotFoundError,
    Transition,
    UtcOffset,
)

from .common import AMS_TZ_POSIX, make_tzif, system_tz, system_tz_ams

ONE = UtcOffset(hours=1)
TWO = UtcOffset(hours=2)
# Amsterdam moves to summer time in 2024
SPRING_2024 = Instant.from_utc(2024, 3, 31, 1)


@pytest.fixture(scope="module")
def ams():
    return TimeZone.of("Europe/Amsterdam")


@pytest.fixture(scope="module")
def custom():
    return TimeZone.from_transitions(
        "Custom/Spring", ONE, [Transition(SPRING_2024, ONE, TWO)]
    )


class TestOf:

    def test_iana(self, ams):
        assert ams.id == "Europe/Amsterdam"
        assert ams.offset_at(Instant.from_utc(2024, 1, 1)) == ONE
        assert ams.offset_at(Instant.from_utc(2024, 7, 1)) == TWO

    def test_utc(self):
        assert TimeZone.of("Z") is TimeZone.UTC
        assert TimeZone.UTC.id == "Z"
        for name in ("UTC", "GMT", "UT"):
            zone = TimeZone.of(name)
            assert zone.id == name
            assert zone.offset_at(Instant.from_utc(2024, 7, 1)) == UtcOffset()

    @pytest.mark.parametrize(
        "zone_id, offset, expect_id",
        [
            ("+01:30", UtcOffset(hours=1, minutes=30), "+01:30"),
            ("-0530", UtcOffset(hours=-5, minutes=-30), "-05:30"),
            ("-3", UtcOffset(hours=-3), "-03:00"),
            ("+00:00", UtcOffset(), "Z"),
            ("UTC+01:00", ONE, "UTC+01:00"),
            ("GMT-0530", UtcOffset(hours=-5, minutes=-30), "GMT-05:30"),
            ("UT+2", TWO, "UT+02:00"),
            ("UTC+0", UtcOffset(), "UTC"),
        ],
    )
    def test_offsets(self, zone_id, offset, expect_id):
        zone = TimeZone.of(zone_id)
        assert zone.id == expect_id
        assert zone.offset_at(Instant.from_utc(2024, 7, 1)) == offset
        assert not zone.transitions

    @pytest.mark.parametrize(
        "zone_id",
        [
            "",
            "Nowhere/Special",
            "../etc/passwd",
            "Europe/",
            "/Europe/Amsterdam",
            "Europe//Amsterdam",
            "+25:00",
            "+01:99",
            "UTC+",
            "UTC+01:00:00:00",
            "Europe/Amsterdam\x00",
        ],
    )
    def test_not_found(self, zone_id):
        with pytest.raises(TimeZoneNotFoundError):
            TimeZone.of(zone_id)

    def test_not_found_message(self):
        with pytest.raises(
            TimeZoneNotFoundError,
            match="No time zone found for key: 'Nowhere/Special'",
        ):
            TimeZone.of("Nowhere/Special")
        assert issubclass(TimeZoneNotFoundError, ValueError)

    def test_wrong_type(self):
        with pytest.raises(TypeError):
            TimeZone.of(3)  # type: ignore[arg-type]

    def test_no_constructor(self):
        with pytest.raises(TypeError, match="TimeZone.of"):
            TimeZone()


def test_fixed():
    zone = TimeZone.fixed(UtcOffset(hours=3, minutes=30))
    assert zone.id == "+03:30"
    assert zone == TimeZone.of("+03:30")
    assert zone == UtcOffset(hours=3, minutes=30).as_timezone()
    assert TimeZone.fixed(UtcOffset()).id == "Z"


class TestFromTransitions:

    def test_offsets(self, custom):
        assert custom.id == "Custom/Spring"
        assert custom.offset_at(SPRING_2024.subtract(seconds=1)) == ONE
        assert custom.offset_at(SPRING_2024) == TWO
        # no recurring rule: the last offset stays
        assert custom.offset_at(Instant.from_utc(2030, 1, 1)) == TWO

    def test_transitions(self, custom):
        assert custom.transitions == (Transition(SPRING_2024, ONE, TWO),)

    def test_recurring(self):
        zone = TimeZone.from_transitions(
            "Custom/Recurring",
            UtcOffset(minutes=20),
            [
                Transition(
                    Instant.from_utc(1940, 5, 16), UtcOffset(minutes=20), ONE
                )
            ],
            recurring=AMS_TZ_POSIX,
        )
        assert zone.offset_at(Instant.from_utc(1900, 1, 1)) == UtcOffset(
            minutes=20
        )
        assert zone.offset_at(Instant.from_utc(2030, 1, 1)) == ONE
        assert zone.offset_at(Instant.from_utc(2030, 7, 1)) == TWO

    def test_invalid_recurring(self):
        with pytest.raises(ValueError, match="POSIX TZ string"):
            TimeZone.from_transitions("Foo", ONE, [], recurring="nonsense")

    def test_offsets_must_line_up(self):
        with pytest.raises(ValueError, match="must match"):
            TimeZone.from_transitions(
                "Foo", UtcOffset(), [Transition(SPRING_2024, ONE, TWO)]
            )

    def test_must_be_increasing(self):
        with pytest.raises(ValueError, match="increasing"):
            TimeZone.from_transitions(
                "Foo",
                ONE,
                [
                    Transition(SPRING_2024, ONE, TWO),
                    Transition(SPRING_2024.subtract(hours=1), TWO, ONE),
                ],
            )

    def test_whole_seconds_only(self):
        at = SPRING_2024.add(nanoseconds=1)
        with pytest.raises(ValueError, match="whole seconds"):
            TimeZone.from_transitions("Foo", ONE, [Transition(at, ONE, TWO)])


class TestTransition:

    def test_init(self):
        t = Transition(SPRING_2024, ONE, TWO)
        assert t.at == SPRING_2024
        assert t.offset_before == ONE
        assert t.offset_after == TWO

    def test_invalid(self):
        with pytest.raises(ValueError, match="change the offset"):
            Transition(SPRING_2024, ONE, ONE)
        with pytest.raises(TypeError):
            Transition(1_700_000_000, ONE, TWO)  # type: ignore[arg-type]
        with pytest.raises(TypeError):
            Transition(SPRING_2024, 3600, TWO)  # type: ignore[arg-type]

    def test_equality(self):
        t = Transition(SPRING_2024, ONE, TWO)
        same = Transition(Instant.from_utc(2024, 3, 31, 1), ONE, TWO)
        assert t == same
        assert hash(t) == hash(same)
        assert t != Transition(SPRING_2024, ONE, UtcOffset(hours=3))
        assert t != SPRING_2024

    def test_repr(self):
        assert repr(Transition(SPRING_2024, ONE, TWO)) == (
            "Transition(2024-03-31T01:00:00Z, +01:00 -> +02:00)"
        )


class TestAmbiguity:

    def test_normal(self, ams):
        local = LocalDateTime(2024, 7, 1, 12)
        assert ams.valid_offsets(local) == [TWO]
        assert ams.resolve(local) == (local, TWO)
        assert ams.resolve(local, prefer=ONE) == (local, TWO)

    def test_gap(self, ams):
        local = LocalDateTime(2024, 3, 31, 2, 30, nanosecond=5)
        assert ams.valid_offsets(local) == []
        assert ams.resolve(local) == (
            LocalDateTime(2024, 3, 31, 3, 30, nanosecond=5),
            TWO,
        )
        assert ams.resolve(local, prefer=ONE) == ams.resolve(local)

    @pytest.mark.parametrize(
        "prefer, expected",
        [
            (None, TWO),
            (TWO, TWO),
            (ONE, ONE),
            (UtcOffset(), ONE),
            (UtcOffset(hours=5), TWO),
        ],
    )
    def test_overlap(self, ams, prefer, expected):
        local = LocalDateTime(2024, 10, 27, 2, 30)
        assert ams.valid_offsets(local) == [TWO, ONE]
        assert ams.resolve(local, prefer=prefer) == (local, expected)

    def test_custom_zone(self, custom):
        assert custom.valid_offsets(LocalDateTime(2024, 3, 31, 2, 59)) == []
        assert custom.valid_offsets(LocalDateTime(2024, 3, 31, 3)) == [TWO]

    def test_all_transitions_line_up(self, ams):
        transitions = ams.transitions
        assert transitions
        for a, b in zip(transitions, transitions[1:]):
            assert a.at < b.at
            assert a.offset_after == b.offset_before


class TestSystemDefault:

    def test_iana(self):
        with system_tz_ams():
            zone = TimeZone.system_default()
            assert zone.id == "Europe/Amsterdam"
            assert zone == TimeZone.of("Europe/Amsterdam")

    def test_posix_string(self):
        with system_tz(AMS_TZ_POSIX):
            zone = TimeZone.system_default()
            assert zone.id == AMS_TZ_POSIX
            assert zone.offset_at(Instant.from_utc(2024, 1, 1)) == ONE
            assert zone.offset_at(Instant.from_utc(2024, 7, 1)) == TWO

    def test_file(self, tmp_path):
        path = tmp_path / "localtime"
        path.write_bytes(make_tzif([3600, 7200], [(1_711_846_800, 1)]))
        with system_tz(str(path)):
            zone = TimeZone.system_default()
            assert zone.id == "SYSTEM"
            assert zone.offset_at(SPRING_2024) == TWO
            assert zone.offset_at(SPRING_2024.subtract(seconds=1)) == ONE

    def test_cached_until_reset(self):
        with system_tz_ams():
            zone = TimeZone.system_default()
            assert TimeZone.system_default() == zone

    @pytest.mark.parametrize("name", ["Nowhere/Zone", "Nowhere/1x"])
    def test_not_found(self, name):
        with pytest.raises(TimeZoneNotFoundError):
            with system_tz(name):
                pass


def test_equality(ams, custom):
    same = TimeZone.of("Europe/Amsterdam")
    assert ams == same
    assert hash(ams) == hash(same)
    assert ams != TimeZone.of("Europe/Berlin")
    assert TimeZone.of("UTC") != TimeZone.UTC
    assert custom != ams
    assert ams != "Europe/Amsterdam"  # type: ignore[comparison-overlap]


def test_str_and_repr(ams):
    assert str(ams) == "Europe/Amsterdam"
    assert repr(ams) == "TimeZone(Europe/Amsterdam)"
    assert repr(TimeZone.of("+01:30")) == "TimeZone(+01:30)"


def test_copy_and_pickle(ams, custom):
    for zone in (ams, custom, TimeZone.UTC, TimeZone.of("UTC+01:00")):
        assert copy(zone) is zone
        assert deepcopy(zone) is zone
        assert pickle.loads(pickle.dumps(zone)) == zone

    # zones which can be looked up are pickled by ID only
    assert len(pickle.dumps(ams)) < 100
    assert len(pickle.dumps(custom)) > len(pickle.dumps(ams))


def test_cannot_subclass():
    with pytest.raises(TypeError):

        class Subclass(TimeZone):  # type: ignore[misc]
            pass
