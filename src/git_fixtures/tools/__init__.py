from .repo import git_init, commit
from .history import build_tmp
from .process import process_bin
from .verify import assert_no_fatal_markers, process_exit
from .remote import clone_remote
from .common import make_tmp_dir

__all__ = [
    "git_init",
    "commit",
    "build_tmp",
    "process_bin",
    "process_exit",
    "assert_no_fatal_markers",
    "clone_remote",
    "make_tmp_dir",
]
