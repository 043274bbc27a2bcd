#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
autodecode.py: decode a suspicious text fragment under a named scheme, or let
auto-detection try every scheme plus single-byte XOR and rank the outputs.
"""

import argparse
import base64
import binascii
import html
import os
import re
import string
import sys
import urllib.parse
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from colorama import init as _init_colorama, Fore, Style

# ---------- Colors ----------
_init_colorama(autoreset=True)
BOLD = Style.BRIGHT; RESET = Style.RESET_ALL
CYAN, GREEN, YELLOW, BLUE = Fore.CYAN, Fore.GREEN, Fore.YELLOW, Fore.BLUE

def cCYN(s): return f"{BOLD}{CYAN}{s}{RESET}"
def cGRN(s): return f"{BOLD}{GREEN}{s}{RESET}"
def cYEL(s): return f"{BOLD}{YELLOW}{s}{RESET}"
def cBLU(s): return f"{BLUE}{s}{RESET}"

def eprint(*a, **k): print(*a, file=sys.stderr, **k)

# Set by -d/--debug
DEBUG = False

def debug(msg: str):
    if DEBUG:
        eprint(cBLU(f"[debug] {msg}"))

# ---------- Tunables ----------
LETTER_WEIGHT = 2.0
VOWEL_WEIGHT = 3.0
SPACE_WEIGHT = 1.5
PRINTABLE_THRESHOLD = 0.9
CONFIDENCE_THRESHOLD = 10.0

XOR_TOP_N = 8
CAESAR_DEFAULT_SHIFT = 13
CAESAR_SWEEP = range(1, 26)
DEFAULT_OUTPUT_PATH = "decoded.txt"

# ---------- Errors ----------
class DecodeError(Exception):
    """Input is not well-formed for the requested scheme."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason

# ---------- Data classes ----------
@dataclass(frozen=True)
class Candidate:
    scheme: str
    text: str
    score: float = 0.0
    variant: Any = None

@dataclass(frozen=True)
class SchemeDefinition:
    name: str
    transform: Callable[..., str]
    description: str = ""
    # keyword parameter -> default value
    params: Dict[str, Any] = field(default_factory=dict)
    auto: bool = True
    sweep: Optional[Tuple[str, Sequence[Any]]] = None

@dataclass(frozen=True)
class DecodeRequest:
    text: str
    mode: str = "auto"
    params: Dict[str, Any] = field(default_factory=dict)

# ---------- Scoring ----------
_LETTER_RE = re.compile(r"[A-Za-z]")
_VOWEL_RE = re.compile(r"[aeiouAEIOU]")

def _is_printable_char(ch: str) -> bool:
    return " " <= ch <= "~"

def printable_ratio(text: Optional[str]) -> float:
    if not text: return 0.0
    return sum(1 for ch in text if _is_printable_char(ch)) / len(text)

def is_printable(text: Optional[str]) -> bool:
    """Generic sanity check: mostly printable ASCII."""
    return printable_ratio(text) > PRINTABLE_THRESHOLD

def score_text(text: Optional[str]) -> float:
    """
    Plausibility of `text` as natural language. Rewards letters, vowels and
    spaces, scaled by the share of printable ASCII. Only meaningful relative to
    other candidates for the same input.
    """
    if not text:
        return 0.0
    letters = len(_LETTER_RE.findall(text))
    vowels = len(_VOWEL_RE.findall(text))
    # control whitespace (\r, \t, ...) is already penalized by the printable ratio
    spaces = sum(1 for ch in text if ch.isspace() and _is_printable_char(ch))
    raw = letters * LETTER_WEIGHT + vowels * VOWEL_WEIGHT + spaces * SPACE_WEIGHT
    return raw * printable_ratio(text)

# ---------- Byte derivation ----------
_WS_RE = re.compile(r"\s+")
_HEX_WS_RE = re.compile(r"[0-9a-fA-F\s]+")
_B64_RE = re.compile(r"[A-Za-z0-9+/]*={0,2}")

def _b64_normalize(s: str) -> str:
    return _WS_RE.sub("", s).replace("-", "+").replace("_", "/")

def _b64_strict(s: str) -> bytes:
    if len(s) % 4 or not _B64_RE.fullmatch(s):
        raise binascii.Error("bad base64 alphabet or padding")
    return base64.b64decode(s, validate=True)

def derive_bytes(text: str) -> bytes:
    """Best guess at the raw bytes behind `text`: hex, then Base64, then UTF-8."""
    s = text.strip()
    if _HEX_WS_RE.fullmatch(s):
        hx = _WS_RE.sub("", s)
        if len(hx) % 2 == 0:
            debug("derived bytes from hex")
            return bytes.fromhex(hx)
    try:
        raw = _b64_strict(_b64_normalize(s))
        debug("derived bytes from base64")
        return raw
    except binascii.Error:
        pass
    # undecodable argv bytes arrive as lone surrogates; give them back as bytes
    try:
        return s.encode("utf-8", "surrogateescape")
    except UnicodeEncodeError:
        return s.encode("utf-8", "surrogatepass")

# ---------- Registry ----------
SCHEMES: Dict[str, SchemeDefinition] = {}

def register_scheme(name: str, description: str = "", params: Optional[Dict[str, Any]] = None,
                    auto: bool = True, sweep: Optional[Tuple[str, Sequence[Any]]] = None):
    """Decorator adding a transform to the scheme registry."""
    def wrap(fn):
        if name in SCHEMES:
            raise ValueError(f"scheme already registered: {name}")
        SCHEMES[name] = SchemeDefinition(name, fn, description, dict(params or {}), auto, sweep)
        return fn
    return wrap

def list_schemes() -> List[str]:
    return list(SCHEMES)

def list_modes() -> List[str]:
    return ["auto", *SCHEMES, "xor"]

# ---------- Letter helpers ----------
_LOWER, _UPPER = string.ascii_lowercase, string.ascii_uppercase

def _caesar_table(k: int) -> Dict[int, int]:
    k %= 26
    return str.maketrans(_LOWER + _UPPER, _LOWER[k:] + _LOWER[:k] + _UPPER[k:] + _UPPER[:k])

_ROT13_TABLE = _caesar_table(13)
_ATBASH_TABLE = str.maketrans(_LOWER + _UPPER, _LOWER[::-1] + _UPPER[::-1])
_LEET_TABLE = str.maketrans({
    '4': 'a', '@': 'a', '8': 'b', '3': 'e', '6': 'g', '1': 'l',
    '0': 'o', '5': 's', '$': 's', '7': 't', '+': 't', '2': 'z',
})

def _utf8(raw: bytes) -> str:
    return raw.decode("utf-8", errors="replace")

# ---------- Base/encoding decoders ----------
@register_scheme("base64", "Standard or URL-safe Base64, padding optional")
def dec_base64(text: str) -> str:
    s = _b64_normalize(text.strip())
    s += "=" * (-len(s) % 4)
    try:
        return _utf8(_b64_strict(s))
    except binascii.Error:
        raise DecodeError("Invalid Base64")

@register_scheme("hex", "Hex digits, separators ignored")
def dec_hex(text: str) -> str:
    s = re.sub(r"[^0-9a-fA-F]", "", text)
    if len(s) < 2 or len(s) % 2:
        raise DecodeError("Invalid hex")
    return _utf8(bytes.fromhex(s))

@register_scheme("binary", "8-bit groups of 0/1, space separated or one run")
def dec_binary(text: str) -> str:
    s = re.sub(r"[^01\s]", "", text).strip()
    if not s:
        raise DecodeError("Invalid binary")
    parts = s.split()
    if len(parts) == 1 and len(parts[0]) % 8 == 0:
        run = parts[0]
        parts = [run[i:i+8] for i in range(0, len(run), 8)]
    try:
        values = [int(p, 2) for p in parts]
    except ValueError:
        raise DecodeError("Invalid binary")
    # one group is one byte
    if any(v > 0xFF for v in values):
        raise DecodeError("Invalid binary")
    return "".join(chr(v) for v in values)

@register_scheme("rot13", "Caesar shift of 13")
def dec_rot13(text: str) -> str:
    return text.translate(_ROT13_TABLE)

@register_scheme("leet", "Leet-speak digits and symbols back to letters")
def dec_leet(text: str) -> str:
    return text.translate(_LEET_TABLE)

@register_scheme("atbash", "Mirrored alphabet (A<->Z)")
def dec_atbash(text: str) -> str:
    return text.translate(_ATBASH_TABLE)

_B32_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ234567"

@register_scheme("base32", "RFC 4648 Base32, padding optional")
def dec_base32(text: str) -> str:
    s = re.sub(r"[^A-Z2-7=]", "", text.upper()).rstrip("=")
    bits = []
    for ch in s:
        idx = _B32_ALPHABET.find(ch)
        if idx < 0:
            raise DecodeError("Invalid Base32")
        bits.append(f"{idx:05b}")
    bitstr = "".join(bits)
    # trailing partial byte is dropped
    return _utf8(bytes(int(bitstr[i:i+8], 2) for i in range(0, len(bitstr) - 7, 8)))

@register_scheme("reverse", "Reversed character order")
def dec_reverse(text: str) -> str:
    return text[::-1]

@register_scheme("html", "HTML named/numeric character references")
def dec_html(text: str) -> str:
    # unescape is lenient: unknown or broken references are left as written
    return html.unescape(text)

_MORSE_TABLE = {
    '.-':'A','-...':'B','-.-.':'C','-..':'D','.':'E','..-.':'F','--.':'G','....':'H','..':'I',
    '.---':'J','-.-':'K','.-..':'L','--':'M','-.':'N','---':'O','.--.':'P','--.-':'Q','.-.':'R',
    '...':'S','-':'T','..-':'U','...-':'V','.--':'W','-..-':'X','-.--':'Y','--..':'Z',
    '-----':'0','.----':'1','..---':'2','...--':'3','....-':'4','.....':'5','-....':'6','--...':'7','---..':'8','----.':'9',
    '.-.-.-':'.','--..--':',','..--..':'?','-.-.--':'!','-..-.':'/','-.--.':'(','-.--.-':')',
    '---...':':','-.-.-.':';','-....-':'-','.-.-.':'+','-...-':'=','.-..-.':'"','...-..-':'$','.-...':'&',
    '/':'/',
}
_MORSE_WORD_SEP = re.compile(r"\s{2,}|\s/\s|\s/|/\s")

@register_scheme("morse", "Dots and dashes; words split by /, | or double space")
def dec_morse(text: str) -> str:
    words = _MORSE_WORD_SEP.split(text.strip().replace("|", " / "))
    matched = 0
    out_words = []
    for w in words:
        letters = []
        for tok in w.split():
            ch = _MORSE_TABLE.get(tok)
            if ch is None:
                letters.append("?")
            else:
                letters.append(ch); matched += 1
        out_words.append("".join(letters))
    if not matched:
        raise DecodeError("Invalid morse")
    return " ".join(out_words)

# ---------- Classical ciphers ----------
@register_scheme("caesar", "Caesar shift (letters moved back by shift)",
                 params={"shift": CAESAR_DEFAULT_SHIFT}, sweep=("shift", CAESAR_SWEEP))
def dec_caesar(text: str, shift: Any = CAESAR_DEFAULT_SHIFT) -> str:
    try:
        k = int(shift)
    except (TypeError, ValueError):
        raise DecodeError("Invalid shift")
    return text.translate(_caesar_table(-k))

@register_scheme("url", "Percent-encoding (%XX)")
def dec_url(text: str) -> str:
    if re.search(r"%(?![0-9A-Fa-f]{2})", text):
        raise DecodeError("Invalid URL encoding")
    try:
        return urllib.parse.unquote_to_bytes(text).decode("utf-8")
    except (UnicodeDecodeError, UnicodeEncodeError):
        raise DecodeError("Invalid URL encoding")

def _letter_offset(ch: str) -> int:
    return ord(ch.upper()) - 65

@register_scheme("vigenere", "Vigenère decryption with a known key",
                 params={"key": None}, auto=False)
def dec_vigenere(text: str, key: Optional[str] = None) -> str:
    if not key:
        raise DecodeError("Missing Vigenère key")
    shifts = [_letter_offset(ch) for ch in str(key) if ch in string.ascii_letters]
    if not shifts:
        raise DecodeError("Invalid Vigenère key")
    out = []; j = 0
    for ch in text:
        if ch in string.ascii_letters:
            base = 65 if ch <= "Z" else 97
            out.append(chr((ord(ch) - base - shifts[j % len(shifts)]) % 26 + base))
            j += 1
        else:
            out.append(ch)
    return "".join(out)

# ---------- Single-scheme decode ----------
def _bind(scheme: SchemeDefinition, params: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Keyword arguments for `scheme`: declared params only, defaults filled in."""
    params = params or {}
    return {name: params.get(name, default) for name, default in scheme.params.items()}

def get_scheme(name: str) -> SchemeDefinition:
    try:
        return SCHEMES[name]
    except KeyError:
        raise DecodeError(f"Unknown scheme: {name}")

def decode(name: str, text: str, params: Optional[Dict[str, Any]] = None) -> str:
    """Run one scheme explicitly. Raises DecodeError on malformed input."""
    scheme = get_scheme(name)
    return scheme.transform(text, **_bind(scheme, params))

# ---------- XOR bruteforce ----------
def xor_single(data: bytes, key: int) -> bytes:
    return bytes(b ^ key for b in data)

def xor_search(text: str) -> List[Candidate]:
    """Try every non-zero single-byte key; return the best XOR_TOP_N by score."""
    data = derive_bytes(text)
    outs: List[Candidate] = []
    for key in range(1, 256):
        pt = _utf8(xor_single(data, key))
        sc = score_text(pt)
        if sc > 0:
            outs.append(Candidate("xor", pt, sc, key))
    # stable: equal scores keep ascending key order
    outs.sort(key=lambda c: c.score, reverse=True)
    return outs[:XOR_TOP_N]

# ---------- Auto-detection ----------
def _best_sweep(scheme: SchemeDefinition, text: str) -> Optional[Candidate]:
    param, values = scheme.sweep
    best: Optional[Candidate] = None
    for value in values:
        try:
            out = scheme.transform(text, **{param: value})
        except DecodeError:
            continue
        sc = score_text(out)
        if sc > (best.score if best else 0):
            best = Candidate(scheme.name, out, sc, value)
    return best

def auto_detect(text: str) -> List[Candidate]:
    """
    Run every auto-eligible scheme and the XOR search against `text` and
    return all successful outputs ranked by score, best first.

    Sweep schemes (Caesar) contribute only their best-scoring variant. Schemes
    that reject the input are skipped. Equal scores keep production order:
    registration order, then XOR key order.
    """
    results: List[Candidate] = []
    for scheme in SCHEMES.values():
        if not scheme.auto:
            continue
        if scheme.sweep:
            best = _best_sweep(scheme, text)
            if best:
                results.append(best)
            continue
        try:
            out = scheme.transform(text)
        except DecodeError as e:
            debug(f"skip {scheme.name}: {e.reason}")
            continue
        results.append(Candidate(scheme.name, out, score_text(out)))

    results.extend(xor_search(text))
    results.sort(key=lambda c: c.score, reverse=True)
    return results

def solve(request: DecodeRequest) -> List[Candidate]:
    """Dispatch a request on its mode: 'auto', 'xor' or a scheme name."""
    if request.mode == "auto":
        return auto_detect(request.text)
    if request.mode == "xor":
        return xor_search(request.text)
    scheme = get_scheme(request.mode)
    kwargs = _bind(scheme, request.params)
    out = scheme.transform(request.text, **kwargs)
    variant = next(iter(kwargs.values()), None)
    return [Candidate(scheme.name, out, score_text(out), variant)]

# ---------- Display ----------
def describe(c: Candidate) -> str:
    if c.variant is None:
        return c.scheme
    if c.scheme == "xor":
        return f"xor(0x{c.variant:02x})"
    if c.scheme == "caesar":
        return f"caesar(shift={c.variant})"
    return f"{c.scheme}(key='{c.variant}')"

def safe_text(text: str) -> str:
    """Lone surrogates (undecodable argv bytes) become U+FFFD so the text can be written out."""
    return text.encode("utf-8", "surrogatepass").decode("utf-8", "replace")

def display_text(text: str) -> str:
    """Mostly-printable text as is, anything else with escapes."""
    if not text or is_printable(text):
        return safe_text(text)
    return ascii(text)[1:-1]

def render_candidates(cands: Sequence[Candidate], top: Optional[int] = None):
    if not cands:
        print(cYEL("No candidates found.")); return
    shown = cands[:top] if top is not None else cands
    for i, c in enumerate(shown, 1):
        tag = "" if not c.text or is_printable(c.text) else cBLU(" [unprintable, escaped]")
        print(f"{cCYN(f'{i}.')} {describe(c)} - score {c.score:.1f}{tag}")
        print(f"    {display_text(c.text)}")
    if len(shown) < len(cands):
        print(cBLU(f"... {len(cands) - len(shown)} more candidate(s) hidden (-n)"))

def print_scheme_list():
    print(cCYN("Available schemes:"))
    for s in SCHEMES.values():
        flags = "" if s.auto else "  [explicit only]"
        print(f"  {s.name:<10} {s.description}{flags}")
    print(f"  {'xor':<10} Single-byte XOR bruteforce (top {XOR_TOP_N})")

# ---------- Helpers ----------
def is_file(p: str) -> bool:
    try:
        return os.path.isfile(p)
    except (OSError, ValueError):
        return False

def read_value_or_file(v: Optional[str]) -> Optional[str]:
    if v is None: return None
    if is_file(v):
        with open(v, "r", encoding="utf-8", errors="replace") as f:
            return f.read()
    return v

def read_input(args) -> Optional[str]:
    value = args.text if args.text is not None else args.ciphertext
    if value is not None:
        return read_value_or_file(value)
    if not sys.stdin.isatty():
        return sys.stdin.read()
    return read_value_or_file(input("Ciphertext (text or path to file): "))

def save_output(path: str, text: str):
    with open(path, "w", encoding="utf-8") as f:
        f.write(safe_text(text))

def positive_int(v: str) -> int:
    n = int(v)
    if n < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {v}")
    return n

# ---------- Main ----------
def main(argv: Optional[Sequence[str]] = None):
    global DEBUG
    ap = argparse.ArgumentParser(
        description="autodecode: decode a text fragment or auto-detect its encoding",
        add_help=False
    )
    ap.add_argument("ciphertext", nargs="?", help="Encoded text (raw string or path to file)")
    ap.add_argument("-t","--text", help="Encoded text, same as the positional argument")
    ap.add_argument("-m","--mode", choices=list_modes(), default="auto", help="Scheme to apply (default: auto)")
    ap.add_argument("-s","--shift", type=int, default=CAESAR_DEFAULT_SHIFT, help=f"Caesar shift (default: {CAESAR_DEFAULT_SHIFT})")
    ap.add_argument("-k","--key", help="Vigenère key")
    ap.add_argument("-n","--top", type=positive_int, help="Show at most N candidates (N >= 1)")
    ap.add_argument("-o","--output", nargs="?", const=DEFAULT_OUTPUT_PATH, help=f"Save the chosen output (default file: {DEFAULT_OUTPUT_PATH})")
    ap.add_argument("-l","--list", action="store_true", help="List available schemes and exit")
    ap.add_argument("-d","--debug", action="store_true", help="Print debug messages to stderr")
    ap.add_argument("-h","--help", action="help", help="Show this help and exit")
    args = ap.parse_args(argv)
    DEBUG = args.debug

    if args.list:
        print_scheme_list()
        sys.exit(0)

    text = read_input(args)
    if text is None or not text.strip():
        print(cYEL("No input to decode.")); sys.exit(2)
    text = text.strip()

    request = DecodeRequest(text, args.mode, {"shift": args.shift, "key": args.key})
    try:
        cands = solve(request)
    except DecodeError as e:
        print(cYEL(f"Error: {e.reason}")); sys.exit(1)

    result: Optional[str] = None
    if request.mode == "auto":
        print(cCYN("=== Candidates ==="))
        render_candidates(cands, args.top)
        if cands and cands[0].score > CONFIDENCE_THRESHOLD:
            result = cands[0].text
        else:
            print(cYEL("No high-confidence auto-detection result - see candidates above."))
    else:
        render_candidates(cands, args.top)
        if cands:
            result = cands[0].text

    if result is None:
        sys.exit(1)
    print(f"{cGRN('Result:')} {safe_text(result)}")
    if args.output:
        try:
            save_output(args.output, result)
        except OSError as e:
            print(cYEL(f"Failed to write {args.output}: {e}")); sys.exit(2)
        print(cBLU(f"Saved to {args.output}"))
    sys.exit(0)

if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        print("\nInterrupted."); sys.exit(130)
