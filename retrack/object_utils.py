from functools import cache
from itertools import chain
from math import copysign

PRIMITIVE_TYPES = (type(None), bool, int, float, complex, str, bytes)


@cache
def get_class_slots(cls):
    """utility to collect all __slots__ entries for a given type and its supertypes"""
    # collect via iterables for performance
    # deduplicate via set
    return set(
        chain.from_iterable(getattr(cls, "__slots__", []) for cls in cls.__mro__)
    )


def get_object_attrs(obj):
    """utility to collect all stateful attributes of an object"""
    # __slots__ from full class ancestry
    attrs = get_class_slots(type(obj))
    try:
        # all __dict__ entries
        obj_keys = vars(obj).keys()
        if obj_keys:
            attrs = attrs.copy()
            attrs.update(obj_keys)
    except TypeError:
        pass
    return attrs


def same_value(a, b) -> bool:
    """
    Identity comparison, except for primitives of the same type which
    compare by value. NaN equals NaN, 0.0 and -0.0 differ.
    """
    if a is b:
        return True
    if type(a) is not type(b) or not isinstance(a, PRIMITIVE_TYPES):
        return False
    if isinstance(a, float):
        if a != a:
            return b != b
        return a == b and copysign(1.0, a) == copysign(1.0, b)
    return a == b
