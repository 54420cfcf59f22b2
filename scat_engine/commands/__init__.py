"""
commands/ — voice command channel

Modules:
    command.py   - Command value
    parser.py    - Utterance → Command
    router.py    - Single active command target, help, repeat, exit
"""
