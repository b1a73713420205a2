from operator import index as as_index

from .context import ITERATE_KEY, LENGTH_KEY, context
from .proxy import TYPE_LOOKUP, Proxy
from .traps import construct_methods_traps_dict, trap_map

list_traps = {
    "READERS": {
        "count",
        "index",
        "copy",
        "__add__",
        "__contains__",
        "__eq__",
        "__ge__",
        "__gt__",
        "__le__",
        "__lt__",
        "__mul__",
        "__ne__",
        "__rmul__",
        "__repr__",
        "__str__",
        "__format__",
        "__sizeof__",
    },
    "KEYREADERS": {
        "__getitem__",
    },
    "ITERATORS": {
        "__iter__",
        "__reversed__",
    },
    "SIZE": {
        "__len__",
    },
    "SEQUENCEWRITERS": {
        "append",
        "clear",
        "extend",
        "insert",
        "pop",
        "remove",
        "reverse",
        "sort",
        "__delitem__",
        "__iadd__",
        "__imul__",
    },
    "INDEXWRITERS": {
        "__setitem__",
    },
}


class ListProxyBase(Proxy[list]):
    __slots__ = ()

    def _dep_key(self, key):
        """Index to track for the given key, None for slices"""
        if isinstance(key, slice):
            return None
        key = as_index(key)
        if key < 0:
            # the item that is read depends on the length as well
            self._track_size()
            key += len(self.__target__)
        return key

    def _track_size(self):
        context.track(self.__target__, LENGTH_KEY)

    def _track_contents(self):
        context.track(self.__target__, ITERATE_KEY)


ListProxy = type(
    "ListProxy",
    (ListProxyBase,),
    {"__slots__": (), **construct_methods_traps_dict(list, list_traps, trap_map)},
)


def type_test(target):
    return isinstance(target, list)


TYPE_LOOKUP[type_test] = ListProxy
