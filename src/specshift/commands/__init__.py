"""Built-in CLI sub-commands for specshift.

* :mod:`~specshift.commands.pipeline` -- ``validate``, ``flatten`` and
  ``synthesize`` run the document pipeline from the command line.
* :mod:`~specshift.commands.serve` -- run the HTTP service.
* :mod:`~specshift.commands.config` -- view and modify the user config.
"""
