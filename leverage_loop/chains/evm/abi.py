"""Pure ABI helpers for contract calls: no I/O."""
from __future__ import annotations

from typing import Any

from eth_abi import decode, encode
from eth_utils import decode_hex, encode_hex, function_signature_to_4byte_selector


def split_types(signature: str) -> list[str]:
    """Return the top-level argument types of a function signature.

    Examples:
        "supply(address,uint256,address,uint16)" → ["address", "uint256", "address", "uint16"]
        "f((address,uint24),uint256)" → ["(address,uint24)", "uint256"]
    """
    start = signature.index("(")
    inner = signature[start + 1 : -1]
    types: list[str] = []
    depth = 0
    current = ""
    for char in inner:
        if char == "," and depth == 0:
            types.append(current)
            current = ""
            continue
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
        current += char
    if current:
        types.append(current)
    return types


def encode_call(signature: str, *args: Any) -> str:
    """Encode calldata for ``signature`` as a 0x-prefixed hex string."""
    selector = function_signature_to_4byte_selector(signature)
    return encode_hex(selector + encode(split_types(signature), list(args)))


def decode_result(types: list[str], data: str) -> tuple[Any, ...]:
    raw = decode_hex(data) if data else b""
    if not raw:
        return ()
    return tuple(decode(types, raw))


def decode_uint(data: str) -> int:
    values = decode_result(["uint256"], data)
    return int(values[0]) if values else 0


def decode_bool(data: str) -> bool:
    # Some tokens return no data on success.
    values = decode_result(["bool"], data)
    return bool(values[0]) if values else True


def receipt_succeeded(receipt: dict[str, Any]) -> bool:
    status = receipt.get("status", "0x0")
    return int(status, 16) == 1 if isinstance(status, str) else int(status) == 1
