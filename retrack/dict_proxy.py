from .context import ITERATE_KEY, context
from .proxy import TYPE_LOOKUP, Proxy
from .traps import construct_methods_traps_dict, trap_map

dict_traps = {
    "READERS": {
        "copy",
        "__eq__",
        "__format__",
        "__ne__",
        "__repr__",
        "__sizeof__",
        "__str__",
        "__or__",
        "__ror__",
    },
    "KEYREADERS": {
        "get",
        "__getitem__",
    },
    "HASKEY": {
        "__contains__",
    },
    "ITERATORS": {
        "items",
        "values",
    },
    "KEYITERATORS": {
        "keys",
        "__iter__",
        "__reversed__",
    },
    "SIZE": {
        "__len__",
    },
    "WRITERS": {
        "clear",
        "popitem",
        "update",
        "__ior__",
    },
    "KEYWRITERS": {
        "setdefault",
        "__setitem__",
    },
    "KEYDELETERS": {
        "pop",
        "__delitem__",
    },
}


class DictProxyBase(Proxy[dict]):
    __slots__ = ()

    def _dep_key(self, key):
        return key

    def _track_size(self):
        context.track(self.__target__, ITERATE_KEY)

    def _track_contents(self):
        if not context.stack:
            return
        target = self.__target__
        context.track(target, ITERATE_KEY)
        for key in target:
            context.track(target, key)


DictProxy = type(
    "DictProxy",
    (DictProxyBase,),
    {"__slots__": (), **construct_methods_traps_dict(dict, dict_traps, trap_map)},
)


def type_test(target):
    return isinstance(target, dict)


TYPE_LOOKUP[type_test] = DictProxy
