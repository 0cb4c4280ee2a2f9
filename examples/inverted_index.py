"""
Inverted index, reduce side.
Intermediate records map each word to a document it appears in.
"""


def reduce_function(key, values):
    """
    Reduce function: list the documents a word appears in.

    Args:
        key: Word
        values: List of document names, possibly repeated

    Returns:
        "<count> <doc1>,<doc2>,..." with unique documents in sorted order
    """
    unique_docs = sorted(set(values))
    return f"{len(unique_docs)} {','.join(unique_docs)}"
