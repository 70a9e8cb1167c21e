# contractkit

A library for working with Wasm smart contract artifacts and the nodes that
run them:

- `contractkit.source` and `contractkit.contract`: reading and writing contract
  metadata documents (the JSON found in `.contract` and `metadata.json` files),
- `contractkit.compatibility`: checking that a contract's ink! version suits a
  given tool version,
- `contractkit.byte_str`: the hex byte-string encoding used by the metadata,
- `contractkit.primitives`: the result and value types of contract RPC calls,
- `contractkit.rpc`: raw JSON-RPC calls to a node over WebSocket, with a
  compact syntax for parameters.

## Installation

```
pip install contractkit
```

To run the test suite:

```
pip install "contractkit[test]"
pytest
```

## Contract metadata

```python
import semver
from contractkit.source import (
    CodeHash, Compiler, Language, Source, SourceCompiler, SourceLanguage, SourceWasm,
)
from contractkit.contract import Contract, ContractMetadata, User

source = Source(
    hash=CodeHash(bytes(32)),
    language=SourceLanguage(Language.INK, semver.Version.parse("2.1.0")),
    compiler=SourceCompiler(Compiler.RUSTC, semver.Version.parse("1.46.0-nightly")),
    wasm=SourceWasm(b"\x00\x01\x02"),
)

contract = (
    Contract.builder()
    .name("incrementer")
    .version("2.1.0")
    .authors(["Jane Doe <jane@example.com>"])
    .description("increment a value")
    .homepage("http://example.com")
    .build()
)

metadata = ContractMetadata(
    source=source,
    contract=contract,
    image=None,
    user=User({"some-user-provided-field": "and-its-value"}),
    abi={"spec": {}, "storage": {}, "types": []},
)

document = metadata.to_dict()
same = ContractMetadata.from_dict(document)
```

How a document is written:

- `source.hash` and `source.wasm` are `0x`-prefixed lower-case hex; `language`
  and `compiler` are strings such as `"ink! 2.1.0"` and `"rustc 1.46.0-nightly"`.
- `source.wasm`, `source.build_info`, `user` and the optional contract fields
  (`description`, `documentation`, `repository`, `homepage`, `license`) are left
  out when not set; `image` is always written, as `null` when absent.
- The ABI mapping is flattened into the top level. When reading, every key
  other than `source`, `contract`, `image` and `user` goes into `abi`.
- URLs must be absolute; for `http`, `https`, `ws`, `wss` and `ftp` an empty
  path becomes `/` and the scheme and host are lower-cased.

`ContractMetadata.load(path)` reads a metadata file; it raises `OSError` if
the file cannot be opened and `ValueError` if it cannot be parsed.
`remove_source_wasm_attribute()` drops the bundled Wasm code.

`ContractBuilder` lets each field be set only once; setting one again, or
passing an empty author list, raises `ValueError`. `build()` raises
`ValueError("Missing required non-default fields: name, version, authors")`,
naming just the missing ones.

`Language.parse`, `Compiler.parse`, `SourceLanguage.parse` and
`SourceCompiler.parse` read the text forms and raise `ValueError` on bad input.

## Hex byte strings

```python
from contractkit.byte_str import (
    serialize_as_byte_str, deserialize_from_byte_str, deserialize_from_byte_str_array,
)

serialize_as_byte_str(b"\x00\x01\x02")            # "0x000102"
serialize_as_byte_str(b"")                        # ""
deserialize_from_byte_str("000102")               # b"\x00\x01\x02"
deserialize_from_byte_str_array("0x" + "00" * 32) # 32 bytes, else ValueError
```

## Compatibility checks

```python
from contractkit.compatibility import check_contract_ink_compatibility, load_compatibility

compatibility = load_compatibility(
    '{"cargo-contract": {"3.2.0": {"ink": ["^4.0.0-alpha.3", "^4.0.0"]}}}'
)
check_contract_ink_compatibility("4.2.0", "3.2.0", compatibility)
```

The compatibility list maps tool versions to lists of ink! version
requirements. It may be given as JSON text, a parsed mapping, a path to a JSON
file, or the result of `load_compatibility`. When the tool version is `None`,
`compatibility.CURRENT_VERSION` is used. `ContractMetadata.check_ink_compatibility`
runs the same check for contracts written in ink!.

A `CompatibilityError` is raised when the tool version has no entry or no
requirements, or when the ink! version matches none of them; in the last case
the message names the best tool version whose requirements do match
(preferring releases over prereleases) and the requirements to update to.

`VersionReq.parse` understands `=`, `>`, `>=`, `<`, `<=`, `~`, `^`, bare
versions (treated as `^`), wildcards such as `1.*` and `*`, and comma separated
lists. Prerelease versions only match a requirement that names a prerelease of
the same major, minor and patch.

## Result types

`contractkit.primitives` holds plain data classes for contract RPC results:
`Weight`, `ReturnFlags` (with `ExecReturnValue.did_revert()`),
`ContractAccessError`, `ExecReturnValue`, `InstantiateReturnValue`,
`CodeUploadReturnValue`, `Code` (`Code.upload(wasm)`, `Code.existing(hash)`),
`StorageDeposit` (`StorageDeposit.refund(n)`, `StorageDeposit.charge(n)`,
ordered with refunds before charges) and `ContractResult`.

## Raw RPC calls

```python
import asyncio
from contractkit.rpc import RawParams, RpcRequest

params = RawParams(["5GrwvaEF5zXb26Fz9rcQpDWS57CtERHpNehXCPcNoHGKutQY", '"sr25"'])
print(params.to_json())
# ["0xd43593c715fdd31c61141abd04a99fd6822c8558854ccde39a5684e7a56da27d","sr25"]

async def main():
    async with RpcRequest("ws://localhost:9944") as rpc:
        print(await rpc.supported_methods())
        print(await rpc.raw_call("author_hasKey", params))

asyncio.run(main())
```

Parameter syntax (`parse_value`):

- integers (with optional sign and `_` separators), `true`, `false`,
- quoted strings `"..."` and characters `'c'` with escapes,
- `0x...` hex, kept as a string,
- SS58 addresses, turned into the `0x` hex of the 32-byte account id
  (`ss58_decode` does the decoding and checks the checksum),
- tuples `(1, 2)` as lists, maps `{a: 1}` as objects, bit sequences `<0101>`,
- variants `Name(..)` / `Name{..}` as `{"name": ..., "values": ...}`.

`RpcRequest.supported_methods()` asks the node for `rpc_methods` and drops
those whose names contain `watch`, `unstable` or `subscribe`.
`raw_call(method, params)` refuses any method not in that list and returns
the decoded JSON result. Connection, protocol and node errors, as well as bad
parameters, raise `RpcError`.

## What this package does not do

There is no command-line tool. The package does not build contracts, and it
does not upload, instantiate, call or remove them on a chain; it has no
transaction signing and no SCALE encoding of the result types. No
compatibility list is bundled: the caller supplies one.