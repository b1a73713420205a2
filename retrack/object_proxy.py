from .context import ITERATE_KEY, context
from .object_utils import get_object_attrs, same_value
from .proxy import TYPE_LOOKUP, Proxy, is_stdlib_type, observe, to_raw

_MISSING = object()

# attributes that belong to the proxy itself instead of the target
PROXY_ATTRS = frozenset(Proxy.__slots__) | {"__deepcopy__", "__class__"}


class ObjectProxyBase(Proxy):
    __slots__ = ()

    def __getattribute__(self, name):
        if name in PROXY_ATTRS:
            return super().__getattribute__(name)

        target = self.__target__
        if name not in get_object_attrs(target) and hasattr(type(target), name):
            # methods, properties and other class level attributes
            return getattr(target, name)

        context.track(target, name)
        return observe(getattr(target, name), self.__depth__ + 1)

    def __setattr__(self, name, value):
        if name in PROXY_ATTRS:
            return super().__setattr__(name, value)

        target = self.__target__
        old_value = getattr(target, name, _MISSING)
        setattr(target, name, to_raw(value))

        if name not in get_object_attrs(target):
            # the set attr is not stateful (e.g. someone
            # is attaching a bound method)
            # so no need to track this modification
            return

        if old_value is _MISSING:
            context.trigger(target, name, ITERATE_KEY)
        elif not same_value(old_value, getattr(target, name)):
            context.trigger(target, name)

    def __delattr__(self, name):
        if name in PROXY_ATTRS:
            return super().__delattr__(name)

        target = self.__target__
        is_target_attr = name in get_object_attrs(target)
        delattr(target, name)
        if is_target_attr:
            context.trigger(target, name, ITERATE_KEY)

    def __dir__(self):
        context.track(self.__target__, ITERATE_KEY)
        return dir(self.__target__)


def passthrough(method):
    def trap(self, *args, **kwargs):
        fn = getattr(self.__target__, method, None)
        if fn is None:
            # we don't cache this
            # since it is possible a class is dynamically modified later
            # invalidating the cached result...
            raise TypeError(f"object of type '{type(self)}' has no {method}")
        return fn(*args, **kwargs)

    return trap


# protocol methods that are forwarded to the target as is;
# __call__ is left out on purpose since callables are never observed
magic_methods = [
    "__abs__",
    "__add__",
    "__and__",
    "__bool__",
    "__contains__",
    "__delitem__",
    "__enter__",
    "__eq__",
    "__exit__",
    "__float__",
    "__floordiv__",
    "__format__",
    "__ge__",
    "__getitem__",
    "__gt__",
    "__hash__",
    "__index__",
    "__int__",
    "__invert__",
    "__iter__",
    "__le__",
    "__len__",
    "__lt__",
    "__matmul__",
    "__mod__",
    "__mul__",
    "__ne__",
    "__neg__",
    "__next__",
    "__or__",
    "__pos__",
    "__pow__",
    "__radd__",
    "__repr__",
    "__reversed__",
    "__rmul__",
    "__rsub__",
    "__rtruediv__",
    "__setitem__",
    "__str__",
    "__sub__",
    "__truediv__",
    "__xor__",
]


ObjectProxy = type(
    "ObjectProxy",
    (ObjectProxyBase,),
    {"__slots__": (), **{method: passthrough(method) for method in magic_methods}},
)


def type_test(target):
    # exclude builtin and standard library objects
    # exclude objects for which we have better proxies available
    # exclude ndarrays
    cls = type(target)
    return (
        not isinstance(target, (list, dict, tuple))
        and not is_stdlib_type(cls)
        and cls.__module__.partition(".")[0] != "numpy"
    )


TYPE_LOOKUP[type_test] = ObjectProxy
