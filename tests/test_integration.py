#!/usr/bin/env python3
"""
Integration tests to ensure the command line works end to end
"""

import sys
import os
import subprocess
import tempfile
import base64

ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
SCRIPT = os.path.join(ROOT, "autodecode.py")

def run_autodecode(*args, stdin=None):
    """Run autodecode and return (returncode, stdout, stderr)"""
    cmd = [sys.executable, SCRIPT, *args]
    env = dict(os.environ, PYTHONIOENCODING="utf-8")
    try:
        result = subprocess.run(cmd, input=stdin, capture_output=True, text=True,
                                encoding="utf-8", env=env, timeout=30)
        return result.returncode, result.stdout, result.stderr
    except subprocess.TimeoutExpired:
        return -1, "", "Timeout"

def test_explicit_base64():
    """Test explicit Base64 decoding"""
    print("Testing explicit Base64...")

    encoded = base64.b64encode(b"Hello World").decode()
    returncode, stdout, stderr = run_autodecode(encoded, "-m", "base64")

    assert returncode == 0, f"Expected success, got return code {returncode}: {stderr}"
    assert "Result:" in stdout, f"Expected 'Result:' in output: {stdout}"
    assert "Hello World" in stdout, f"Expected decoded text in output: {stdout}"

    print("✅ Explicit Base64 test passed")

def test_auto_mode():
    """Test auto-detection lists the hex decoding"""
    print("Testing auto mode...")

    encoded = "Hello World".encode().hex()
    returncode, stdout, stderr = run_autodecode(encoded)

    assert returncode == 0, f"Expected success, got return code {returncode}: {stderr}"
    assert "Candidates" in stdout, f"Expected candidate list in output: {stdout}"
    assert "hex - score" in stdout, f"Expected a hex candidate in output: {stdout}"
    assert "Hello World" in stdout, f"Expected decoded text in output: {stdout}"

    print("✅ Auto mode test passed")

def test_caesar_and_vigenere_options():
    """Test shift and key options"""
    print("Testing cipher options...")

    returncode, stdout, stderr = run_autodecode("Khoor Zruog", "-m", "caesar", "-s", "3")
    assert returncode == 0
    assert "caesar(shift=3)" in stdout, f"Expected shift label in output: {stdout}"
    assert "Hello World" in stdout

    returncode, stdout, stderr = run_autodecode("Lxfopvefrnhr", "-m", "vigenere", "-k", "lemon")
    assert returncode == 0
    assert "Attackatdawn" in stdout, f"Expected plaintext in output: {stdout}"

    print("✅ Cipher option tests passed")

def test_decode_error():
    """Test that a decode failure is reported, not raised"""
    print("Testing decode errors...")

    returncode, stdout, stderr = run_autodecode("Lxfopvefrnhr", "-m", "vigenere")
    assert returncode == 1, f"Expected return code 1, got {returncode}"
    assert "Error: Missing Vig" in stdout, f"Expected error message in output: {stdout}"
    assert "Traceback" not in stderr

    returncode, stdout, stderr = run_autodecode("xyz", "-m", "hex")
    assert returncode == 1
    assert "Error: Invalid hex" in stdout

    print("✅ Decode error tests passed")

def test_xor_mode_and_output_file():
    """Test XOR mode and saving the chosen output"""
    print("Testing XOR mode with output file...")

    ciphertext = bytes(b ^ 0x42 for b in b"attack at dawn").hex()
    with tempfile.TemporaryDirectory() as tmp:
        out_path = os.path.join(tmp, "decoded.txt")
        returncode, stdout, stderr = run_autodecode(ciphertext, "-m", "xor", "-o", out_path)

        assert returncode == 0, f"Expected success, got return code {returncode}: {stderr}"
        assert "xor(0x42)" in stdout, f"Expected key label in output: {stdout}"
        with open(out_path, encoding="utf-8") as f:
            assert f.read() == "attack at dawn"

    print("✅ XOR mode test passed")

def test_stdin_and_list():
    """Test reading from stdin and listing schemes"""
    print("Testing stdin input and scheme listing...")

    returncode, stdout, stderr = run_autodecode("-m", "rot13", stdin="Uryyb\n")
    assert returncode == 0
    assert "Hello" in stdout

    returncode, stdout, stderr = run_autodecode("--list")
    assert returncode == 0
    for name in ("base64", "morse", "vigenere", "xor"):
        assert name in stdout, f"Expected '{name}' in scheme list: {stdout}"

    returncode, stdout, stderr = run_autodecode("   ")
    assert returncode == 2, f"Expected return code 2 for empty input, got {returncode}"

    print("✅ Stdin and listing tests passed")

def test_top_must_be_positive():
    """Test that -n rejects zero and negative counts"""
    print("Testing -n validation...")

    for value in ("0", "-1"):
        returncode, stdout, stderr = run_autodecode("hello", "-n", value)
        assert returncode == 2, f"Expected usage error for -n {value}, got {returncode}"
        assert "at least 1" in stderr, f"Expected validation message: {stderr}"

    returncode, stdout, stderr = run_autodecode("hello", "-n", "1")
    assert returncode in (0, 1)
    assert "more candidate(s) hidden" in stdout, f"Expected hidden-candidate notice: {stdout}"

    print("✅ -n validation tests passed")

def test_undecodable_argument():
    """Test that non-UTF-8 bytes on the command line do not crash"""
    print("Testing undecodable argument...")

    # subprocess encodes lone surrogates back to the raw bytes 0xff 0xfe
    returncode, stdout, stderr = run_autodecode("\udcff\udcfe")
    assert "Traceback" not in stderr, f"Unexpected crash: {stderr}"
    assert returncode in (0, 1), f"Unexpected return code {returncode}: {stderr}"
    assert "Candidates" in stdout

    returncode, stdout, stderr = run_autodecode("\udcff\udcfe", "-m", "reverse")
    assert "Traceback" not in stderr, f"Unexpected crash: {stderr}"
    assert returncode == 0
    assert "\\udcfe\\udcff" in stdout, f"Expected escaped output: {stdout}"

    print("✅ Undecodable argument tests passed")

def run_all_tests():
    """Run all integration tests"""
    print("🧪 Running integration tests...")
    print("=" * 50)

    try:
        test_explicit_base64()
        test_auto_mode()
        test_caesar_and_vigenere_options()
        test_decode_error()
        test_xor_mode_and_output_file()
        test_stdin_and_list()
        test_top_must_be_positive()
        test_undecodable_argument()

        print("=" * 50)
        print("🎉 All integration tests passed!")
        return True

    except AssertionError as e:
        print(f"❌ Test failed: {e}")
        return False
    except Exception as e:
        print(f"❌ Unexpected error: {e}")
        import traceback
        traceback.print_exc()
        return False

if __name__ == "__main__":
    success = run_all_tests()
    sys.exit(0 if success else 1)
