import json

import pytest
import semver

from contractkit.compatibility import CompatibilityError
from contractkit.contract import Contract, ContractBuilder, ContractMetadata, User
from contractkit.source import (
    CodeHash,
    Compiler,
    Language,
    Source,
    SourceCompiler,
    SourceLanguage,
    SourceWasm,
)

AUTHOR = "Example Author <author@example.com>"
IMAGE = "example/contracts-verifiable:3.0.1"
ZERO_HASH = "0x" + "00" * 32


def _source(wasm=None, build_info=None, language=Language.INK):
    return Source(
        hash=CodeHash(bytes(32)),
        language=SourceLanguage(language, semver.Version(2, 1, 0)),
        compiler=SourceCompiler(Compiler.RUSTC, semver.Version.parse("1.46.0-nightly")),
        wasm=wasm,
        build_info=build_info,
    )


def _full_contract():
    return (
        Contract.builder()
        .name("incrementer")
        .version(semver.Version(2, 1, 0))
        .authors([AUTHOR])
        .description("increment a value")
        .documentation("http://docs.example.com/")
        .repository("http://example.com/repo/")
        .homepage("http://example.com/")
        .license("Apache-2.0")
        .build()
    )


def _abi():
    return {"spec": {}, "storage": {}, "types": []}


def _user():
    return User(
        {
            "more-user-provided-fields": ["and", "their", "values"],
            "some-user-provided-field": "and-its-value",
        }
    )


def _build_info():
    return {
        "example_compiler_version": 42,
        "example_settings": [],
        "example_name": "increment",
    }


@pytest.mark.parametrize(
    "builder, message",
    [
        (
            ContractBuilder().version(semver.Version(2, 1, 0)).authors([AUTHOR]),
            "Missing required non-default fields: name",
        ),
        (
            ContractBuilder().name("incrementer").authors([AUTHOR]),
            "Missing required non-default fields: version",
        ),
        (
            ContractBuilder().name("incrementer").version(semver.Version(2, 1, 0)),
            "Missing required non-default fields: authors",
        ),
        (
            ContractBuilder(),
            "Missing required non-default fields: name, version, authors",
        ),
    ],
)
def test_builder_fails_with_missing_required_fields(builder, message):
    with pytest.raises(ValueError) as info:
        builder.build()
    assert str(info.value) == message


def test_builder_rejects_second_assignment():
    builder = Contract.builder().name("incrementer")
    with pytest.raises(ValueError, match="name has already been set"):
        builder.name("other")


def test_builder_requires_an_author():
    with pytest.raises(ValueError, match="must have at least one author"):
        Contract.builder().authors([])


def test_builder_rejects_relative_url():
    with pytest.raises(ValueError):
        Contract.builder().homepage("not a url")


def test_url_gets_root_path():
    contract = (
        Contract.builder()
        .name("x")
        .version("1.0.0")
        .authors([AUTHOR])
        .homepage("http://example.com")
        .build()
    )
    assert contract.homepage == "http://example.com/"


def test_json_with_optional_fields():
    metadata = ContractMetadata(
        _source(SourceWasm(bytes([0, 1, 2])), _build_info()),
        _full_contract(),
        IMAGE,
        _user(),
        _abi(),
    )
    expected = {
        "source": {
            "hash": ZERO_HASH,
            "language": "ink! 2.1.0",
            "compiler": "rustc 1.46.0-nightly",
            "wasm": "0x000102",
            "build_info": _build_info(),
        },
        "image": IMAGE,
        "contract": {
            "name": "incrementer",
            "version": "2.1.0",
            "authors": [AUTHOR],
            "description": "increment a value",
            "documentation": "http://docs.example.com/",
            "repository": "http://example.com/repo/",
            "homepage": "http://example.com/",
            "license": "Apache-2.0",
        },
        "user": {
            "more-user-provided-fields": ["and", "their", "values"],
            "some-user-provided-field": "and-its-value",
        },
        "spec": {},
        "storage": {},
        "types": [],
    }
    assert metadata.to_dict() == expected


def test_json_excludes_optional_fields():
    contract = (
        Contract.builder()
        .name("incrementer")
        .version(semver.Version(2, 1, 0))
        .authors([AUTHOR])
        .build()
    )
    metadata = ContractMetadata(_source(), contract, None, None, _abi())
    expected = {
        "contract": {
            "name": "incrementer",
            "version": "2.1.0",
            "authors": [AUTHOR],
        },
        "image": None,
        "source": {
            "hash": ZERO_HASH,
            "language": "ink! 2.1.0",
            "compiler": "rustc 1.46.0-nightly",
        },
        "spec": {},
        "storage": {},
        "types": [],
    }
    assert metadata.to_dict() == expected


def test_decoding_works():
    metadata = ContractMetadata(
        _source(SourceWasm(bytes([0, 1, 2])), _build_info()),
        _full_contract(),
        None,
        _user(),
        _abi(),
    )
    encoded = metadata.to_dict()
    decoded = ContractMetadata.from_dict(json.loads(json.dumps(encoded)))
    assert decoded.to_dict() == encoded
    assert decoded.contract.name == "incrementer"
    assert decoded.abi == _abi()
    assert decoded.user == _user()


def test_from_dict_missing_contract():
    with pytest.raises(ValueError, match="missing field `contract`"):
        ContractMetadata.from_dict({"source": _source().to_dict()})


def test_contract_round_trip():
    contract = _full_contract()
    assert Contract.from_dict(contract.to_dict()) == contract


def test_remove_source_wasm_attribute():
    metadata = ContractMetadata(
        _source(SourceWasm(b"\x00")), _full_contract(), None, None, {}
    )
    metadata.remove_source_wasm_attribute()
    assert metadata.source.wasm is None
    assert "wasm" not in metadata.to_dict()["source"]


def test_load_reads_file(tmp_path):
    metadata = ContractMetadata(_source(), _full_contract(), IMAGE, None, _abi())
    path = tmp_path / "flipper.json"
    path.write_text(json.dumps(metadata.to_dict()), encoding="utf-8")
    loaded = ContractMetadata.load(path)
    assert loaded.to_dict() == metadata.to_dict()


def test_load_missing_file(tmp_path):
    with pytest.raises(OSError, match="Failed to open metadata file"):
        ContractMetadata.load(tmp_path / "absent.json")


def test_load_invalid_file(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ValueError, match="Failed to deserialize metadata file"):
        ContractMetadata.load(path)


def test_check_ink_compatibility():
    compatibility = {"cargo-contract": {"3.2.0": {"ink": ["^4.0.0"]}}}
    ink_metadata = ContractMetadata(_source(), _full_contract())
    with pytest.raises(CompatibilityError, match="not compatible"):
        ink_metadata.check_ink_compatibility(compatibility, "3.2.0")

    solidity_metadata = ContractMetadata(
        _source(language=Language.SOLIDITY), _full_contract()
    )
    assert solidity_metadata.check_ink_compatibility(compatibility, "3.2.0") is None


def test_check_ink_compatibility_passes_for_matching_version():
    compatibility = {"cargo-contract": {"3.2.0": {"ink": ["^2.0.0"]}}}
    metadata = ContractMetadata(_source(), _full_contract())
    assert metadata.check_ink_compatibility(compatibility, "3.2.0") is None
    with pytest.raises(CompatibilityError, match="Missing compatibility configuration"):
        metadata.check_ink_compatibility(compatibility, "9.9.9")