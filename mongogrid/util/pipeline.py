from typing import Iterable, Mapping


def contains_key(tree, key: str) -> bool:
    """ Test whether a key is used anywhere in a tree of dicts and lists

        Depth-first. Used to find out whether a pipeline groups documents:

            contains_key([{'$facet': {'a': [{'$group': {...}}]}}], '$group')
            #-> True

    :param tree: A pipeline, a stage, or any value in it
    :param key: The key to look for, e.g. '$group'
    """
    if isinstance(tree, Mapping):
        return any(k == key or contains_key(v, key)
                   for k, v in tree.items())
    elif isinstance(tree, (list, tuple)):
        return any(contains_key(v, key) for v in tree)
    else:
        return False


def contains_stage(pipeline: Iterable[Mapping], stage: str) -> bool:
    """ Test whether a pipeline has a stage, at any depth """
    return contains_key(list(pipeline), stage)
