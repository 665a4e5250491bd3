from __future__ import annotations

import io
import os
import sys
import argparse
import tempfile

from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, BinaryIO

from luaucx.compiler import CompileOptions, LuauCompiler
from luaucx.constants import AAD_EXT, BYTECODE_EXT, CONTAINER_EXT, KEY_SIZE, MAX_KEY_ID
from luaucx.decoder import decode, inspect
from luaucx.encoder import encode
from luaucx.errors import KeyFileError, LuaucxError
from luaucx.header import CipherSuite


Result = Dict[str, Any]


def load_key(path: str) -> bytes:
    """Read a raw key file; it must hold exactly 32 bytes."""
    try:
        with open(path, "rb") as fh:
            key = fh.read(KEY_SIZE + 1)
    except OSError as exc:
        raise KeyFileError(f"failed to read key file {path}: {exc}") from exc
    if len(key) != KEY_SIZE:
        raise KeyFileError(f"key file must be exactly {KEY_SIZE} bytes")
    return key


def _output_path(out_dir: str, path: str, ext: str) -> Path:
    return Path(out_dir) / Path(path).with_suffix(ext).name


def _atomic_write(dest: Path, write: Callable[[BinaryIO], Any]) -> None:
    """Write ``dest`` via a temporary sibling and ``os.replace``.

    A failure leaves any existing ``dest`` untouched and removes the
    temporary file.
    """
    fd, tmp = tempfile.mkstemp(prefix=".luaucx-", suffix=".tmp", dir=str(dest.parent))
    try:
        with os.fdopen(fd, "wb") as fh:
            write(fh)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp, str(dest))
    except BaseException:
        try:
            os.unlink(tmp)
        except FileNotFoundError:
            pass
        raise


def _fail(res: Result, op: str, exc: Exception) -> Result:
    res["status"] = "fail"
    res["message"] = str(exc)
    print(f"Error: failed to {op} {res['path']}: {exc}", file=sys.stderr)
    return res


def _summarize(results: List[Result], quiet: bool) -> bool:
    failed = sum(1 for r in results if r["status"] != "ok")
    if not quiet:
        print(f"Summary: ok={len(results) - failed} failed={failed}")
    return failed == 0


def _encrypt_one(path: str, bytecode: bytes, key: bytes, key_id: Optional[int], aad: bytes, out_dir: str, quiet: bool) -> Result:
    res: Result = {"path": path, "status": "unknown", "output": None}
    out_path = _output_path(out_dir, path, CONTAINER_EXT)
    try:
        _atomic_write(out_path, lambda fh: encode(bytecode, key, key_id or 0, aad, sink=fh))
    except (LuaucxError, OSError, ValueError) as exc:
        return _fail(res, "encrypt", exc)
    res["status"] = "ok"
    res["output"] = str(out_path)
    if not quiet:
        print(f"Successfully encrypted {path} to {out_path}")
    return res


def compile_then_encrypt(
    files: Iterable[str],
    key: bytes,
    key_id: Optional[int] = None,
    aad: bytes = b"",
    *,
    out_dir: str = ".",
    options: CompileOptions = CompileOptions(),
    compiler: Optional[LuauCompiler] = None,
    quiet: bool = False,
) -> List[Result]:
    """Compile each Luau source file and encrypt its bytecode.

    Args:
        files: Luau source paths.
        key: 32-byte key.
        key_id: Key ID stored in each header (0 when None).
        aad: Associated data bound to every container.
        out_dir: Directory receiving ``<name>.luaucx`` files.
        options: Optimization/debug levels passed to the compiler.
        compiler: Compiler collaborator; defaults to ``LuauCompiler()``.
        quiet: Suppress progress lines.

    Returns:
        One result dict per input; a failing file never stops the others.
    """
    compiler = compiler or LuauCompiler()
    results: List[Result] = []
    for path in files:
        try:
            with open(path, "rb") as fh:
                source = fh.read()
            bytecode = compiler.compile(source, options)
        except (LuaucxError, OSError) as exc:
            results.append(_fail({"path": path, "output": None}, "compile", exc))
            continue
        if not quiet:
            print(f"Successfully compiled {path}")
        results.append(_encrypt_one(path, bytecode, key, key_id, aad, out_dir, quiet))
    return results


def encrypt(
    files: Iterable[str],
    key: bytes,
    key_id: Optional[int] = None,
    aad: bytes = b"",
    *,
    out_dir: str = ".",
    quiet: bool = False,
) -> List[Result]:
    """Encrypt already-compiled bytecode files into ``<name>.luaucx``."""
    results: List[Result] = []
    for path in files:
        try:
            with open(path, "rb") as fh:
                bytecode = fh.read()
        except OSError as exc:
            results.append(_fail({"path": path, "output": None}, "encrypt", exc))
            continue
        results.append(_encrypt_one(path, bytecode, key, key_id, aad, out_dir, quiet))
    return results


def decrypt(
    files: Iterable[str],
    key: bytes,
    key_id: Optional[int] = None,
    *,
    out_dir: str = ".",
    aad_out: bool = False,
    quiet: bool = False,
) -> List[Result]:
    """Decrypt containers into ``<name>.luauc``.

    When ``key_id`` is given the header must carry the same key ID. With
    ``aad_out`` the associated data is also written to ``<name>.aad``.
    """
    results: List[Result] = []
    for path in files:
        res: Result = {"path": path, "status": "unknown", "output": None}
        out_path = _output_path(out_dir, path, BYTECODE_EXT)
        try:
            with open(path, "rb") as fh:
                blob = fh.read()
            pt_sink, ad_sink = io.BytesIO(), io.BytesIO()
            decode(blob, key, key_id, plaintext_sink=pt_sink, aad_sink=ad_sink)
            # AD first: a failed .aad write must not leave a fresh .luauc behind
            if aad_out:
                _atomic_write(_output_path(out_dir, path, AAD_EXT), lambda fh: fh.write(ad_sink.getvalue()))
            _atomic_write(out_path, lambda fh: fh.write(pt_sink.getvalue()))
        except (LuaucxError, OSError, ValueError) as exc:
            results.append(_fail(res, "decrypt", exc))
            continue
        res["status"] = "ok"
        res["output"] = str(out_path)
        if not quiet:
            print(f"Successfully decrypted {path} to {out_path}")
        results.append(res)
    return results


def show_info(files: Iterable[str]) -> List[Result]:
    """Print the cleartext header fields of each container."""
    results: List[Result] = []
    for path in files:
        res: Result = {"path": path, "status": "unknown", "output": None}
        try:
            with open(path, "rb") as fh:
                blob = fh.read()
            hdr = inspect(blob)
        except (LuaucxError, OSError) as exc:
            results.append(_fail(res, "inspect", exc))
            continue
        suite = CipherSuite(hdr.cipher_id)
        print(f"Container: {path}")
        print(f"  Version: {hdr.version}")
        print(f"  Cipher: {suite.name} ({hdr.cipher_id})")
        print(f"  Key ID: {hdr.key_id}")
        print(f"  Ciphertext: {hdr.ct_len} bytes")
        print(f"  Associated data: {hdr.ad_len} bytes")
        print(f"  Nonce: {hdr.nonce.hex()}")
        res["status"] = "ok"
        results.append(res)
    return results


def _key_id(text: str) -> int:
    try:
        value = int(text, 0)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid key ID: {text!r}")
    if not 0 <= value <= MAX_KEY_ID:
        raise argparse.ArgumentTypeError(f"key ID must be between 0 and {MAX_KEY_ID}")
    return value


def main(argv: List[str] | None = None):
    ap = argparse.ArgumentParser(
        prog="luaucx",
        description="Compile and encrypt Luau bytecode into .luaucx containers",
        epilog="Containers use XChaCha20-Poly1305; associated data is stored in clear but authenticated.",
    )
    ap.add_argument("-k", "--key", help="Path to encryption key file (exactly 32 bytes)")
    ap.add_argument("--key-id", type=_key_id, help="Key ID to use in the file header, expected to match if decrypting")
    ap.add_argument("--out-dir", help="Directory to output files in (default: working directory)")
    ap.add_argument("--quiet", help="limit outputs to errors and summaries", action="store_true")
    sub = ap.add_subparsers(dest="cmd", required=True)

    ap_compile = sub.add_parser("compile", help="Compile & encrypt Luau source files")
    ap_compile.add_argument(
        "-O", dest="opt_lvl", type=int, nargs="?", const=1, default=1, choices=range(3),
        help="Compile with optimization level n (0-2, default 1)",
    )
    ap_compile.add_argument(
        "-g", dest="debug_lvl", type=int, nargs="?", const=1, default=1, choices=range(3),
        help="Compile with debug level n (0-2, default 1)",
    )
    ap_compile.add_argument("--aad", help="Optional associated data to bind to each file")
    ap_compile.add_argument("--compiler", help="luau-compile executable (default: $LUAUCX_LUAU_COMPILE or PATH)")
    ap_compile.add_argument("inputs", nargs="+", help="Input Luau file(s) to compile & encrypt")

    ap_encrypt = sub.add_parser("encrypt", help="Encrypt Luau bytecode files")
    ap_encrypt.add_argument("--aad", help="Optional associated data to bind to each file")
    ap_encrypt.add_argument("inputs", nargs="+", help="Input Luau bytecode file(s) to encrypt")

    ap_decrypt = sub.add_parser("decrypt", help="Decrypt .luaucx files")
    ap_decrypt.add_argument("--aad-out", action="store_true", help="Also write associated data to <name>.aad")
    ap_decrypt.add_argument("inputs", nargs="+", help="Input .luaucx file(s) to decrypt")

    ap_info = sub.add_parser("info", help="Show container header fields (no key needed)")
    ap_info.add_argument("inputs", nargs="+", help="Input .luaucx file(s)")

    args = ap.parse_args(argv)
    if args.cmd != "info" and not args.key:
        ap.error("the following arguments are required: -k/--key")

    out_dir = args.out_dir or os.getcwd()
    try:
        if args.cmd == "info":
            results = show_info(args.inputs)
        else:
            key = load_key(args.key)
            os.makedirs(out_dir, exist_ok=True)
            if args.cmd == "compile":
                results = compile_then_encrypt(
                    args.inputs,
                    key,
                    args.key_id,
                    os.fsencode(args.aad or ""),
                    out_dir=out_dir,
                    options=CompileOptions(optimization_level=args.opt_lvl, debug_level=args.debug_lvl),
                    compiler=LuauCompiler(args.compiler),
                    quiet=args.quiet,
                )
            elif args.cmd == "encrypt":
                results = encrypt(args.inputs, key, args.key_id, os.fsencode(args.aad or ""), out_dir=out_dir, quiet=args.quiet)
            elif args.cmd == "decrypt":
                results = decrypt(args.inputs, key, args.key_id, out_dir=out_dir, aad_out=args.aad_out, quiet=args.quiet)
            else:
                raise RuntimeError("Unknown command")
    except KeyFileError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)
    except OSError as e:
        print(f"Error: failed to create output directory: {e}", file=sys.stderr)
        sys.exit(2)
    sys.exit(0 if _summarize(results, args.quiet) else 1)


if __name__ == "__main__":
    main()
