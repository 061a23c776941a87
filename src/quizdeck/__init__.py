"""
quizdeck: study multiple-choice question decks from the terminal.

Decks are imported from JSON files (usually produced by an LLM from the
prompt in ``quizdeck.prompt``), studied in filtered sessions, and analysed
through a text dashboard.

LAYERS:
-------
    model          pure data classes
    validation     import contract and repair of stored data
    serialization  dict / JSON / YAML conversion
    storage        file-backed persistence
    study          filters and the study-session state machine
    analyzer       read-only dashboard reports
    backends       text rendering of reports

Nothing below ``storage`` touches the filesystem.
"""

__version__ = "0.1.0"
