import os
import tempfile
from contextlib import contextmanager
from werkzeug.utils import secure_filename


def safe_name(file_name):
    return secure_filename(file_name or "") or "upload"


@contextmanager
def staged_file(file_bytes, file_name, temp_dir):
    """Write bytes to a temp file under temp_dir and remove it on exit, whatever happens."""
    os.makedirs(temp_dir, exist_ok=True)
    suffix = os.path.splitext(safe_name(file_name))[1]
    with tempfile.NamedTemporaryFile(dir=temp_dir, suffix=suffix, delete=False) as tmp_file:
        tmp_file.write(file_bytes)
        tmp_path = tmp_file.name
    try:
        yield tmp_path
    finally:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
