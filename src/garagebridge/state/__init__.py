"""Door state layer.

Pure mapping between remote tokens and the local door model, plus the
synchronized snapshot shared by the reconciliation loop, the command
dispatcher and the presentation layer.
"""
