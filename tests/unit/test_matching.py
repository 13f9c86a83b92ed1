"""Tests for selecting functions of interest."""

from manifest_producer.analysis.matching import find_function, match_functions
from manifest_producer.config.models import AnalysisConfig
from manifest_producer.models import FunctionDescriptor
from manifest_producer.pipeline import select_targets

FUNCTIONS = [
    FunctionDescriptor("turnLampOn", 0x1000, 0x1010),
    FunctionDescriptor("main", 0x1010, 0x1040),
    FunctionDescriptor("turnLampOnAgain", 0x1040, 0x1050),
    FunctionDescriptor("Lamp::turnLampOn(int)", 0x1050, 0x1060),
]


def test_substring_match_first_in_discovery_order():
    assert find_function("LampOn", FUNCTIONS).name == "turnLampOn"
    assert find_function("turnLampOn(int)", FUNCTIONS).name == "Lamp::turnLampOn(int)"


def test_match_is_case_sensitive():
    assert find_function("turnlampon", FUNCTIONS) is None


def test_exact_match():
    assert find_function("turnLampOnAgain", FUNCTIONS, exact=True).start == 0x1040
    assert find_function("LampOn", FUNCTIONS, exact=True) is None


def test_match_functions_reports_unmatched():
    result = match_functions(["turnLampOn", "turnLampOff"], FUNCTIONS)
    assert list(result.matched) == ["turnLampOn"]
    assert result.unmatched == ("turnLampOff",)


def test_select_all_without_names():
    targets, unmatched = select_targets(FUNCTIONS, None, AnalysisConfig())
    assert targets == FUNCTIONS
    assert unmatched == ()


def test_select_requested_names_in_request_order():
    targets, unmatched = select_targets(
        FUNCTIONS, ["main", "LampOn", "turnLampOn", "turnLampOff"], AnalysisConfig()
    )
    assert [fn.name for fn in targets] == ["main", "turnLampOn"]
    assert unmatched == ("turnLampOff",)


def test_select_all_mode_keeps_every_function():
    targets, unmatched = select_targets(FUNCTIONS, ["nope"], AnalysisConfig(mode="all"))
    assert targets == FUNCTIONS
    assert unmatched == ("nope",)


def test_select_requested_mode_without_names():
    targets, _ = select_targets(FUNCTIONS, None, AnalysisConfig(mode="requested"))
    assert targets == []


def test_first_candidate_wins_among_lamp_functions():
    functions = [
        FunctionDescriptor("turnLampOn", 0x1000, 0x1010),
        FunctionDescriptor("turnLampOff", 0x1010, 0x1020),
        FunctionDescriptor("writeOnDrive", 0x1020, 0x1030),
    ]
    result = match_functions(["Lamp", "Fan"], functions)
    assert {k: v.name for k, v in result.matched.items()} == {"Lamp": "turnLampOn"}
    assert result.unmatched == ("Fan",)
