import shutil

SUPPORTED_RUNTIMES = ("docker", "podman")

_QUOTES = ("'", '"')


def get_runtime_exe(runtime: str = "docker") -> str:
    """Find the container runtime executable."""
    exe = shutil.which(runtime)
    if not exe:
        raise RuntimeError(f"{runtime} not found in PATH")

    return exe


def strip_wrapping_quotes(text: str) -> str:
    """Remove one pair of quotes wrapped around ``inspect`` output.

    Passing ``--format='{{json ...}}'`` without a shell keeps the quotes in
    the template, so the runtime echoes them back around the JSON payload.
    Only the outermost pair is removed.
    """
    if len(text) >= 2 and text[0] in _QUOTES and text[-1] == text[0]:
        return text[1:-1]
    return text
