"""Tests for option extraction from the NixOS options documentation."""

from __future__ import annotations

import asyncio

import pytest

from nixsearch.domain.errors import ExtractionFailedError
from nixsearch.domain.models import Evaluation
from nixsearch.services.importer.options import extract_options, normalize_option, options_build_command

EVALUATION = Evaluation(
    revisions_since_start=105,
    git_revision="abc123",
    storage_prefix="nixos/21.05/nixos-21.05.105.abc123/",
)


def test_literal_example_is_unwrapped() -> None:
    doc = normalize_option(
        "services.nginx.virtualHosts",
        {"example": {"_type": "literalExample", "text": "{ \"example.org\" = {}; }"}},
    )

    assert doc.example == '{ "example.org" = {}; }'


def test_structured_values_are_stringified() -> None:
    doc = normalize_option(
        "boot.kernelParams",
        {"default": [], "example": ["quiet", "splash"], "type": "list of strings"},
    )

    assert doc.default == "[]"
    assert doc.example == "['quiet', 'splash']"
    assert doc.type == "list of strings"


def test_absent_values_render_as_none() -> None:
    doc = normalize_option("networking.hostName", {})

    assert doc.default == "None"
    assert doc.example == "None"
    assert doc.description is None
    assert doc.source is None


def test_source_is_first_declaration() -> None:
    doc = normalize_option(
        "services.openssh.enable",
        {"declarations": ["nixos/modules/services/networking/ssh/sshd.nix", "other.nix"]},
    )
    empty = normalize_option("x", {"declarations": []})

    assert doc.id == doc.option_name == "services.openssh.enable"
    assert doc.source == "nixos/modules/services/networking/ssh/sshd.nix"
    assert empty.source is None


def test_build_command_targets_release_options() -> None:
    command = options_build_command(EVALUATION)

    assert command[:2] == ["nix-build", "<nixpkgs/nixos/release.nix>"]
    assert "--no-out-link" in command
    assert "nixpkgs=https://github.com/NixOS/nixpkgs/archive/abc123.tar.gz" in command


def test_extract_options_reads_built_file(make_runner, options_output) -> None:
    out = options_output(
        {
            "services.openssh.enable": {
                "description": "Whether to enable the OpenSSH daemon.",
                "type": "boolean",
                "default": False,
                "example": True,
                "declarations": ["nixos/modules/services/networking/ssh/sshd.nix"],
            }
        }
    )
    runner = make_runner({"nix-build": (0, f"{out}\n", "")})

    source = asyncio.run(extract_options(EVALUATION, runner))
    docs = list(source.documents())

    assert source.count == 1
    assert docs[0].default == "False"
    assert docs[0].example == "True"
    assert list(source.documents()) == docs


def test_missing_options_file_yields_nothing(make_runner, options_output) -> None:
    out = options_output(None)
    runner = make_runner({"nix-build": (0, str(out), "")})

    source = asyncio.run(extract_options(EVALUATION, runner))

    assert source.count == 0
    assert list(source.documents()) == []


def test_extract_options_fails_on_nonzero_exit(make_runner) -> None:
    runner = make_runner({"nix-build": (100, "", "error: build of options failed")})

    with pytest.raises(ExtractionFailedError) as excinfo:
        asyncio.run(extract_options(EVALUATION, runner))

    assert excinfo.value.returncode == 100


def test_extract_options_rejects_non_object_file(make_runner, options_output, tmp_path) -> None:
    out = options_output(None)
    (out / "share" / "doc" / "nixos" / "options.json").write_text("[]", encoding="utf-8")
    runner = make_runner({"nix-build": (0, str(out), "")})

    with pytest.raises(ExtractionFailedError):
        asyncio.run(extract_options(EVALUATION, runner))
