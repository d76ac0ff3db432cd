"""Built-in CLI sub-commands for cloudauth.

* :mod:`~cloudauth.commands.adc` -- ``token``, ``project``, ``whoami`` and
  ``detect``, all driven by the Application Default Credentials resolver.
* :mod:`~cloudauth.commands.inspect` -- validate a credential file offline.

Each module exports plain callback functions registered directly on the
root app in :mod:`cloudauth.app`.
"""
