"""
Collaborators that sit on top of the logistics engine: the progression
worker, the local mirrored view, the change log and the command console.
"""
