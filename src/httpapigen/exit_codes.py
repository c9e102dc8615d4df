"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to one pipeline stage (or to a usage/config problem) and is
referenced by the corresponding :class:`~httpapigen.exceptions.HttpApiGenError`
subclass. CI scripts can inspect the exit code to learn which stage failed
without parsing stderr.

Example::

    $ httpapigen generate -i broken.yaml
    $ echo $?
    4   # EXIT_VALIDATION_ERROR -- the document failed validation
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_READ_ERROR = 3
"""The input document could not be found, has an unsupported extension, or does not parse."""

EXIT_VALIDATION_ERROR = 4
"""The document failed structural, version, or grammar validation."""

EXIT_RESOLUTION_ERROR = 5
"""A ``$ref`` could not be resolved or was rejected by the remote-fetch policy."""

EXIT_EXTRACTION_ERROR = 6
"""The document could not be turned into the intermediate representation."""

EXIT_GENERATION_ERROR = 7
"""Generated artifacts could not be written to the output directory."""
