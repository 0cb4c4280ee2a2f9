"""
Classic MapReduce word count, reduce side.
Intermediate records are (word, count) pairs with counts as strings.
"""


def reduce_function(key, values):
    """
    Reduce function: sum all counts for a word.

    Args:
        key: Word
        values: List of count strings (usually all "1")

    Returns:
        Total count as a string
    """
    return str(sum(int(v) for v in values))
