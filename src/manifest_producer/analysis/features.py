"""Coarse capability groups for syscall sets."""

from __future__ import annotations

from typing import Iterable

from manifest_producer.models import INDETERMINATE

FEATURE_GROUPS: dict[str, frozenset[str]] = {
    "network": frozenset({
        "socket", "socketpair", "connect", "accept", "accept4", "bind", "listen",
        "sendto", "recvfrom", "sendmsg", "recvmsg", "sendmmsg", "recvmmsg",
        "shutdown", "getsockname", "getpeername", "setsockopt", "getsockopt",
        "socketcall",
    }),
    "filesystem": frozenset({
        "open", "openat", "openat2", "creat", "close", "close_range", "read", "write",
        "readv", "writev", "pread64", "pwrite64", "preadv", "pwritev", "preadv2",
        "pwritev2", "lseek", "_llseek", "stat", "fstat", "lstat", "newfstatat", "statx",
        "stat64", "fstat64", "lstat64", "fstatat64", "access", "faccessat",
        "faccessat2", "getdents", "getdents64", "mkdir", "mkdirat", "rmdir", "unlink",
        "unlinkat", "rename", "renameat", "renameat2", "link", "linkat", "symlink",
        "symlinkat", "readlink", "readlinkat", "chmod", "fchmod", "fchmodat", "chown",
        "fchown", "lchown", "fchownat", "truncate", "ftruncate", "fsync", "fdatasync",
        "sync", "syncfs", "fallocate", "sendfile", "splice", "tee", "copy_file_range",
        "flock", "fcntl", "fcntl64", "dup", "dup2", "dup3", "getcwd", "chdir", "fchdir",
        "utimensat", "mknod", "mknodat", "statfs", "fstatfs", "inotify_init",
        "inotify_init1", "inotify_add_watch", "inotify_rm_watch",
    }),
    "process": frozenset({
        "clone", "clone3", "fork", "vfork", "execve", "execveat", "exit", "exit_group",
        "wait4", "waitid", "waitpid", "kill", "tkill", "tgkill", "ptrace", "prctl",
        "arch_prctl", "getpid", "getppid", "gettid", "setsid", "setpgid", "getpgid",
        "rt_sigaction", "rt_sigprocmask", "rt_sigreturn", "rt_sigsuspend",
        "sigaltstack", "pidfd_open", "pidfd_send_signal", "set_tid_address",
        "sched_yield", "sched_setaffinity", "sched_getaffinity", "setpriority",
        "getpriority", "prlimit64", "getrlimit", "setrlimit", "unshare", "setns",
    }),
    "memory": frozenset({
        "brk", "mmap", "mmap2", "munmap", "mremap", "mprotect", "madvise", "msync",
        "mlock", "munlock", "mlockall", "munlockall", "mincore", "memfd_create",
        "pkey_mprotect",
    }),
    "ipc": frozenset({
        "pipe", "pipe2", "futex", "eventfd", "eventfd2", "shmget", "shmat", "shmdt",
        "shmctl", "semget", "semop", "semctl", "semtimedop", "msgget", "msgsnd",
        "msgrcv", "msgctl", "mq_open", "mq_unlink", "mq_timedsend", "mq_timedreceive",
        "epoll_create", "epoll_create1", "epoll_ctl", "epoll_wait", "epoll_pwait",
        "poll", "ppoll", "select", "pselect6", "signalfd", "signalfd4", "ipc",
    }),
    "time": frozenset({
        "time", "gettimeofday", "settimeofday", "clock_gettime", "clock_settime",
        "clock_getres", "clock_nanosleep", "nanosleep", "alarm", "timer_create",
        "timer_settime", "timer_delete", "timerfd_create", "timerfd_settime",
        "timerfd_gettime", "getitimer", "setitimer", "adjtimex",
    }),
    "device": frozenset({"ioctl", "iopl", "ioperm"}),
    "security": frozenset({
        "setuid", "setgid", "setreuid", "setregid", "setresuid", "setresgid",
        "getuid", "geteuid", "getgid", "getegid", "capget", "capset", "seccomp",
        "chroot", "pivot_root", "landlock_create_ruleset", "landlock_add_rule",
        "landlock_restrict_self", "keyctl", "add_key", "request_key",
    }),
    "system": frozenset({
        "reboot", "mount", "umount2", "swapon", "swapoff", "sethostname",
        "setdomainname", "init_module", "finit_module", "delete_module",
        "kexec_load", "kexec_file_load", "bpf", "perf_event_open", "uname",
        "sysinfo", "syslog", "getrandom",
    }),
}


def classify_features(syscalls: Iterable[str]) -> dict[str, list[str]]:
    """Group ``syscalls`` by capability; unknown names land in ``unknown``."""
    features: dict[str, list[str]] = {}
    for name in sorted(set(syscalls)):
        groups = [group for group, members in FEATURE_GROUPS.items() if name in members]
        if not groups or name == INDETERMINATE:
            groups = ["unknown"]
        for group in groups:
            features.setdefault(group, []).append(name)
    return features
