"""Shared test fixtures for the scratchdiff test suite."""

from __future__ import annotations

import pytest

from scratchdiff.config import DiffConfig
from scratchdiff.diff.engine import DiffEngine
from scratchdiff.serializer.text import ScriptSerializer


@pytest.fixture
def config() -> DiffConfig:
    """Default test configuration."""
    return DiffConfig()


@pytest.fixture
def exact_config() -> DiffConfig:
    """Configuration that only pairs scripts by top-level id."""
    return DiffConfig(fallback_matching="none")


@pytest.fixture
def serializer(config: DiffConfig) -> ScriptSerializer:
    """Script serializer using the default test config."""
    return ScriptSerializer(config)


@pytest.fixture
def engine(config: DiffConfig) -> DiffEngine:
    """Diff engine using the default test config."""
    return DiffEngine(config)


@pytest.fixture
def sb3_target() -> dict:
    """A sprite target as stored in ``project.json``.

    One script: green flag, move, and an ``if touching edge`` wrapping a
    turn.  A second, loose script says hello further down the canvas.
    """
    return {
        "isStage": False,
        "name": "Sprite1",
        "blocks": {
            "hat": {
                "opcode": "event_whenflagclicked",
                "next": "move",
                "parent": None,
                "inputs": {},
                "fields": {},
                "shadow": False,
                "topLevel": True,
                "x": 0,
                "y": 0,
            },
            "move": {
                "opcode": "motion_movesteps",
                "next": "if",
                "parent": "hat",
                "inputs": {"STEPS": [1, [4, "10"]]},
                "fields": {},
                "shadow": False,
                "topLevel": False,
            },
            "if": {
                "opcode": "control_if",
                "next": None,
                "parent": "move",
                "inputs": {"CONDITION": [2, "touch"], "SUBSTACK": [2, "turn"]},
                "fields": {},
                "shadow": False,
                "topLevel": False,
            },
            "touch": {
                "opcode": "sensing_touchingobject",
                "next": None,
                "parent": "if",
                "inputs": {"TOUCHINGOBJECTMENU": [1, "menu"]},
                "fields": {},
                "shadow": False,
                "topLevel": False,
            },
            "menu": {
                "opcode": "sensing_touchingobjectmenu",
                "next": None,
                "parent": "touch",
                "inputs": {},
                "fields": {"TOUCHINGOBJECTMENU": ["_edge_", None]},
                "shadow": True,
                "topLevel": False,
            },
            "turn": {
                "opcode": "motion_turnright",
                "next": None,
                "parent": "if",
                "inputs": {"DEGREES": [1, [4, "180"]]},
                "fields": {},
                "shadow": False,
                "topLevel": False,
            },
            "say": {
                "opcode": "looks_say",
                "next": None,
                "parent": None,
                "inputs": {"MESSAGE": [1, [10, "hello"]]},
                "fields": {},
                "shadow": False,
                "topLevel": True,
                "x": 0,
                "y": 300,
            },
        },
    }


@pytest.fixture
def sb3_project(sb3_target: dict) -> dict:
    """A minimal ``project.json`` with a stage and one sprite."""
    return {
        "targets": [
            {"isStage": True, "name": "Stage", "blocks": {}},
            sb3_target,
        ],
        "meta": {"semver": "3.0.0"},
    }
