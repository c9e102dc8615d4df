"""Built-in CLI sub-commands for httpapigen.

* :mod:`~httpapigen.commands.generate` -- run the full pipeline and write
  the TypeScript artifacts.
* :mod:`~httpapigen.commands.validate` -- read and validate one or more
  documents, printing the validation report.
* :mod:`~httpapigen.commands.inspect` -- read-only views of a document
  (summary, paths, schemas, refs, groups).

Single commands export a plain callback registered on the root app;
``inspect`` exports a :class:`typer.Typer` sub-application.
"""
