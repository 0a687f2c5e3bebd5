"""Built-in CLI sub-commands for speccatalog.

* :mod:`~speccatalog.commands.parse` -- parse documents into a catalog.
* :mod:`~speccatalog.commands.inspect` -- list or dump the operations of
  one document.
* :mod:`~speccatalog.commands.config` -- view and modify global settings.

``parse`` is a plain callback registered directly on the root app; the
other two export a :class:`typer.Typer` sub-application.
"""
