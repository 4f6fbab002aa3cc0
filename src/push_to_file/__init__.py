"""push-to-file: render secret groups through templates into files, atomically."""

from push_to_file.domain.secret import Secret, SecretGroup, SecretSpec
from push_to_file.file_io import open_file_as_sink
from push_to_file.push import push_group_to_file, push_to_writer
from push_to_file.sinks.null import DISCARD, NullSink

__all__ = [
    "DISCARD",
    "NullSink",
    "Secret",
    "SecretGroup",
    "SecretSpec",
    "open_file_as_sink",
    "push_group_to_file",
    "push_to_writer",
]
