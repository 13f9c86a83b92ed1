"""Tests for syscall tables and import wrapper lookups."""

from manifest_producer.analysis.syscalls import SYSCALL_TABLES, syscall_name
from manifest_producer.analysis.wrappers import WrapperTable


def test_x86_64_numbers():
    assert syscall_name("x86_64", 0) == "read"
    assert syscall_name("x86_64", 1) == "write"
    assert syscall_name("x86_64", 41) == "socket"
    assert syscall_name("x86_64", 59) == "execve"
    assert syscall_name("x86_64", 231) == "exit_group"
    assert syscall_name("x86_64", 435) == "clone3"


def test_i386_numbers():
    assert syscall_name("i386", 1) == "exit"
    assert syscall_name("i386", 4) == "write"
    assert syscall_name("i386", 102) == "socketcall"


def test_aarch64_numbers():
    assert syscall_name("aarch64", 56) == "openat"
    assert syscall_name("aarch64", 64) == "write"
    assert syscall_name("aarch64", 198) == "socket"


def test_unknown_number():
    assert syscall_name("x86_64", 9999) == "syscall_9999"
    assert syscall_name("mips", 1) == "syscall_1"


def test_tables_have_no_gaps_in_common_range():
    for abi, table in SYSCALL_TABLES.items():
        assert all(n in table for n in range(0, 200)), abi


def test_libc_wrapper():
    table = WrapperTable("c", "x86_64")
    assert table.lookup("printf") == frozenset({"write"})
    assert table.lookup("open") == frozenset({"openat"})


def test_thin_wrapper_named_after_syscall():
    table = WrapperTable("c", "x86_64")
    assert table.lookup("getpid") == frozenset({"getpid"})
    assert "getpid" in table


def test_unknown_import():
    table = WrapperTable("c", "x86_64")
    assert table.lookup("lamp_controller_init") == frozenset()
    assert "lamp_controller_init" not in table


def test_language_specific_wrappers():
    assert WrapperTable("rust", "x86_64").lookup("__rust_alloc")
    assert not WrapperTable("c", "x86_64").lookup("__rust_alloc")


def test_extra_wrappers_override():
    table = WrapperTable("c", "x86_64", {"printf": ["ioctl"]})
    assert table.lookup("printf") == frozenset({"ioctl"})
