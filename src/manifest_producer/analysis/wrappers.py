"""Library entry points mapped to the syscalls they perform.

Imports are looked up by their normalized name. A name missing from every
table but equal to a syscall name of the ABI is taken as the thin libc
wrapper of that syscall (``getpid`` -> ``getpid``).
"""

from __future__ import annotations

from typing import Mapping

from manifest_producer.analysis.syscalls import SYSCALL_TABLES

_LIBC: dict[str, tuple[str, ...]] = {
    # file I/O
    "open": ("openat",),
    "open64": ("openat",),
    "creat": ("openat",),
    "fopen": ("openat",),
    "fopen64": ("openat",),
    "fdopen": ("fcntl",),
    "freopen": ("openat", "close"),
    "fclose": ("close",),
    "read": ("read",),
    "fread": ("read",),
    "fread_unlocked": ("read",),
    "fgets": ("read",),
    "fgetc": ("read",),
    "getc": ("read",),
    "_IO_getc": ("read",),
    "getchar": ("read",),
    "getline": ("read",),
    "getdelim": ("read",),
    "scanf": ("read",),
    "fscanf": ("read",),
    "__isoc99_scanf": ("read",),
    "__isoc99_fscanf": ("read",),
    "write": ("write",),
    "fwrite": ("write",),
    "fwrite_unlocked": ("write",),
    "fputs": ("write",),
    "fputc": ("write",),
    "putc": ("write",),
    "putchar": ("write",),
    "puts": ("write",),
    "printf": ("write",),
    "fprintf": ("write",),
    "vprintf": ("write",),
    "vfprintf": ("write",),
    "dprintf": ("write",),
    "__printf_chk": ("write",),
    "__fprintf_chk": ("write",),
    "perror": ("write",),
    "fflush": ("write",),
    "pread": ("pread64",),
    "pwrite": ("pwrite64",),
    "lseek64": ("lseek",),
    "fseek": ("lseek",),
    "ftell": ("lseek",),
    "rewind": ("lseek",),
    "stat": ("newfstatat",),
    "stat64": ("newfstatat",),
    "lstat": ("newfstatat",),
    "fstat64": ("fstat",),
    "__xstat": ("stat",),
    "__fxstat": ("fstat",),
    "__lxstat": ("lstat",),
    "opendir": ("openat", "fstat"),
    "fdopendir": ("fstat",),
    "readdir": ("getdents64",),
    "readdir64": ("getdents64",),
    "closedir": ("close",),
    "remove": ("unlinkat",),
    "unlink": ("unlink",),
    "mkstemp": ("openat",),
    "tmpfile": ("openat", "unlink"),
    "sendfile64": ("sendfile",),
    # memory
    "malloc": ("brk", "mmap"),
    "calloc": ("brk", "mmap"),
    "realloc": ("brk", "mmap", "mremap"),
    "free": ("munmap",),
    "posix_memalign": ("brk", "mmap"),
    "aligned_alloc": ("brk", "mmap"),
    "mmap64": ("mmap",),
    # network
    "gethostbyname": ("socket", "connect", "sendto", "recvfrom"),
    "getaddrinfo": ("socket", "connect", "sendto", "recvfrom"),
    "send": ("sendto",),
    "recv": ("recvfrom",),
    # process
    "system": ("clone", "execve", "wait4"),
    "popen": ("pipe2", "clone", "execve"),
    "pclose": ("wait4",),
    "execl": ("execve",),
    "execlp": ("execve",),
    "execle": ("execve",),
    "execv": ("execve",),
    "execvp": ("execve",),
    "execvpe": ("execve",),
    "fork": ("clone",),
    "posix_spawn": ("clone", "execve"),
    "posix_spawnp": ("clone", "execve"),
    "waitpid": ("wait4",),
    "wait": ("wait4",),
    "raise": ("tgkill",),
    "abort": ("rt_sigprocmask", "tgkill"),
    "signal": ("rt_sigaction",),
    "sigaction": ("rt_sigaction",),
    "sigprocmask": ("rt_sigprocmask",),
    "exit": ("exit_group",),
    "_exit": ("exit_group",),
    "_Exit": ("exit_group",),
    "sleep": ("clock_nanosleep",),
    "usleep": ("clock_nanosleep",),
    "pthread_create": ("clone3", "mmap", "mprotect"),
    "pthread_join": ("futex",),
    "pthread_mutex_lock": ("futex",),
    "pthread_mutex_unlock": ("futex",),
    "pthread_cond_wait": ("futex",),
    "pthread_cond_signal": ("futex",),
    # time
    "time": ("time",),
    "clock": ("clock_gettime",),
    "localtime": ("openat", "read"),
    # devices
    "tcgetattr": ("ioctl",),
    "tcsetattr": ("ioctl",),
    "isatty": ("ioctl",),
}

_CPP: dict[str, tuple[str, ...]] = {
    "operator new(unsigned long)": ("brk", "mmap"),
    "operator new[](unsigned long)": ("brk", "mmap"),
    "operator new(unsigned int)": ("brk", "mmap"),
    "operator new[](unsigned int)": ("brk", "mmap"),
    "operator delete(void*)": ("munmap",),
    "operator delete[](void*)": ("munmap",),
    "operator delete(void*, unsigned long)": ("munmap",),
    "__cxa_throw": ("rt_sigprocmask", "tgkill"),
    "std::terminate()": ("rt_sigprocmask", "tgkill"),
}

_RUST: dict[str, tuple[str, ...]] = {
    "__rust_alloc": ("brk", "mmap"),
    "__rust_alloc_zeroed": ("brk", "mmap"),
    "__rust_realloc": ("brk", "mmap", "mremap"),
    "__rust_dealloc": ("munmap",),
    "std::process::abort": ("rt_sigprocmask", "tgkill"),
}

_BY_FAMILY: dict[str, dict[str, tuple[str, ...]]] = {
    "cpp": _CPP,
    "rust": _RUST,
}

# The generic syscall(2) wrapper: its number travels in the first argument.
GENERIC_SYSCALL_WRAPPER = "syscall"


class WrapperTable:
    """Import name to syscall-set lookup for one language family and ABI."""

    def __init__(
        self,
        family: str,
        abi: str,
        extra: Mapping[str, list[str]] | None = None,
    ) -> None:
        self._table: dict[str, frozenset[str]] = {
            name: frozenset(calls) for name, calls in _LIBC.items()
        }
        for name, calls in _BY_FAMILY.get(family, {}).items():
            self._table[name] = frozenset(calls)
        for name, calls in (extra or {}).items():
            self._table[name] = frozenset(calls)
        self._syscall_names = frozenset(SYSCALL_TABLES.get(abi, {}).values())

    def lookup(self, name: str) -> frozenset[str]:
        calls = self._table.get(name)
        if calls is not None:
            return calls
        if name in self._syscall_names:
            return frozenset((name,))
        return frozenset()

    def __contains__(self, name: str) -> bool:
        return name in self._table or name in self._syscall_names
