import re
from typing import List, Optional, Union

from pbom.core.constants import IMPLICIT_TOKEN_SECRET

# ${{ secrets.NAME }} with optional whitespace inside the braces and around the dot
SECRET_REFERENCE_PATTERN = re.compile(r"\$\{\{\s*secrets\s*\.\s*([A-Za-z_][A-Za-z0-9_]*)\s*\}\}")


def extract_secrets(workflow: Union[str, bytes]) -> Optional[List[str]]:
    """
    Return the sorted, de-duplicated secret names referenced by a workflow file.

    The implicit GITHUB_TOKEN is never reported. Returns None when the
    workflow references no other secrets.
    """
    if isinstance(workflow, bytes):
        workflow = workflow.decode("utf-8", errors="replace")

    names = {
        name
        for name in SECRET_REFERENCE_PATTERN.findall(workflow)
        if name != IMPLICIT_TOKEN_SECRET
    }
    if not names:
        return None
    return sorted(names)
