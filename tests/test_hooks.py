#
# infounits - Decode Hooks Tests
#

# Standard library -----------------------------------------------------------------------------------------------------
from dataclasses import dataclass, field

# Third-party ----------------------------------------------------------------------------------------------------------
import pytest

# Local ----------------------------------------------------------------------------------------------------------------
from infounits.errors import DecodeError, InvalidNumberError, InvalidUnitError
from infounits.hooks import (
    compose_hooks, decode, default_hook,
    string_to_bits_hook, string_to_bytes_hook, string_to_unit_hook,
)
from infounits.units import Bits, Bytes


# Helpers --------------------------------------------------------------------------------------------------------------

@dataclass(frozen=True)
class Limits:
    bandwidth: Bits
    max_upload: Bytes = Bytes(0)
    burst: Bits | None = None


@dataclass
class ServerConfig:
    name: str
    limits: Limits
    cache: Bytes = field(default_factory=lambda: Bytes.parse("64MB"))


@dataclass
class Link:
    bandwidth: Bits
    mtu: Bytes


class Label(str):
    pass


# Tests ----------------------------------------------------------------------------------------------------------------

class TestStringToUnitHook:

    def test_bits(self):
        hook = string_to_bits_hook()
        assert hook(str, Bits, "2Kb") == Bits(2000)

    def test_bytes(self):
        hook = string_to_bytes_hook()
        assert hook(str, Bytes, "1KB") == Bytes(8192)

    def test_str_subclass_source(self):
        hook = string_to_bits_hook()
        assert hook(Label, Bits, Label("5b")) == Bits(5)

    @pytest.mark.parametrize(
        "from_type, to_type, data",
        [
            pytest.param(int, Bits, 5, id="int-source"),
            pytest.param(float, Bits, 1.5, id="float-source"),
            pytest.param(str, Bytes, "1KB", id="other-family"),
            pytest.param(str, str, "1Kb", id="str-target"),
            pytest.param(str, int, "1Kb", id="int-target"),
        ],
    )
    def test_not_applicable_returns_data(self, from_type, to_type, data):
        """Return the data unchanged when the type pair does not match."""
        hook = string_to_bits_hook()
        assert hook(from_type, to_type, data) is data

    def test_parse_error_propagates(self):
        hook = string_to_bits_hook()
        with pytest.raises(InvalidUnitError):
            hook(str, Bits, "abc")
        with pytest.raises(InvalidNumberError):
            hook(str, Bits, "Kb")

    def test_hook_name(self):
        assert string_to_bytes_hook().__name__ == "string_to_bytes_hook"

    @pytest.mark.parametrize(
        "cls",
        [
            pytest.param(int, id="int"),
            pytest.param(Bits(1), id="instance"),
            pytest.param("Bits", id="str"),
        ],
    )
    def test_invalid_class(self, cls):
        with pytest.raises(TypeError, match=r"ScaledUnit subclass"):
            string_to_unit_hook(cls)


class TestComposeHooks:

    def test_default_hook_handles_both_families(self):
        hook = default_hook()
        assert hook(str, Bits, "1Kb") == Bits(1000)
        assert hook(str, Bytes, "1KB") == Bytes(8192)
        assert hook(str, str, "1KB") == "1KB"

    def test_source_type_follows_data(self):
        """Each hook sees the type of the data produced by the previous one."""
        seen = []

        def record(from_type, to_type, data):
            seen.append(from_type)
            return data

        hook = compose_hooks(record, string_to_bits_hook(), record)
        assert hook(str, Bits, "3Mb") == Bits(3_000_000)
        assert seen == [str, Bits]

    def test_first_error_stops_chain(self):
        called = []

        def record(from_type, to_type, data):
            called.append(data)
            return data

        hook = compose_hooks(string_to_bits_hook(), record)
        with pytest.raises(InvalidUnitError):
            hook(str, Bits, "3MB")
        assert called == []

    def test_empty_chain(self):
        assert compose_hooks()(str, Bits, "1Kb") == "1Kb"


class TestDecode:

    def test_nested(self):
        data = {
            "name": "edge",
            "limits": {"bandwidth": "100Mb", "max_upload": "1.5GB"},
        }
        config = decode(data, ServerConfig)

        assert config.name == "edge"
        assert config.limits == Limits(bandwidth=Bits(10 ** 8), max_upload=Bytes(12_884_901_888))
        assert config.cache == Bytes(64 * 1024 ** 2 * 8)

    def test_optional_field(self):
        assert decode({"bandwidth": "1Kb", "burst": None}, Limits).burst is None
        assert decode({"bandwidth": "1Kb", "burst": "2Kb"}, Limits).burst == Bits(2000)

    def test_unknown_keys_ignored(self):
        limits = decode({"bandwidth": "", "comment": "unused"}, Limits)
        assert limits == Limits(bandwidth=Bits(0))

    def test_dataclass_instance_kept(self):
        limits = Limits(bandwidth=Bits(1))
        config = decode({"name": "x", "limits": limits}, ServerConfig)
        assert config.limits is limits

    def test_custom_hook(self):
        """Fields without an applicable hook keep their raw value."""
        limits = decode({"bandwidth": "1Kb", "max_upload": "1KB"}, Limits, hook=string_to_bits_hook())
        assert limits.bandwidth == Bits(1000)
        assert limits.max_upload == "1KB"

    def test_top_level_unit_fields(self):
        """Unit fields of the root dataclass are parsed from text."""
        link = decode({"bandwidth": "2Kb", "mtu": "1.5KB"}, Link)
        assert link == Link(bandwidth=Bits(2000), mtu=Bytes(12_288))

    def test_top_level_unit_instances_kept(self):
        link = decode({"bandwidth": Bits(5), "mtu": Bytes(8)}, Link)
        assert link == Link(bandwidth=Bits(5), mtu=Bytes(8))

    def test_top_level_mapping_for_unit_field(self):
        """A mapping is not a unit value, the field is passed through unconverted."""
        link = decode({"bandwidth": {"count": 5}, "mtu": "1B"}, Link)
        assert link.bandwidth == {"count": 5}

    def test_top_level_out_of_range(self):
        with pytest.raises(DecodeError, match=r"^bandwidth: Bit number out of range") as exc_info:
            decode({"bandwidth": "1e300Eb", "mtu": "1B"}, Link)
        assert exc_info.value.path == "bandwidth"
        assert isinstance(exc_info.value.__cause__, InvalidNumberError)

    def test_missing_required(self):
        with pytest.raises(DecodeError, match=r"limits\.bandwidth: missing required field") as exc_info:
            decode({"name": "x", "limits": {}}, ServerConfig)
        assert exc_info.value.path == "limits.bandwidth"

    def test_invalid_value(self):
        data = {"name": "x", "limits": {"bandwidth": "fast"}}
        with pytest.raises(DecodeError, match=r"limits\.bandwidth: Invalid Bit") as exc_info:
            decode(data, ServerConfig)
        assert exc_info.value.path == "limits.bandwidth"
        assert isinstance(exc_info.value.__cause__, InvalidUnitError)

    def test_invalid_nested_mapping(self):
        with pytest.raises(DecodeError, match=r"limits: expected a mapping for Limits, got str"):
            decode({"name": "x", "limits": "oops"}, ServerConfig)

    def test_root_not_mapping(self):
        with pytest.raises(DecodeError, match=r"expected a mapping for Limits, got list") as exc_info:
            decode(["1Kb"], Limits)
        assert exc_info.value.path == ""

    def test_decode_error_is_value_error(self):
        with pytest.raises(ValueError):
            decode({}, Limits)

    @pytest.mark.parametrize(
        "cls",
        [
            pytest.param(dict, id="dict"),
            pytest.param(Limits(bandwidth=Bits(1)), id="instance"),
            pytest.param(Bits, id="bits-class"),
            pytest.param(Bytes, id="bytes-class"),
        ],
    )
    def test_target_not_dataclass(self, cls):
        with pytest.raises(TypeError, match=r"dataclass type"):
            decode({}, cls)
