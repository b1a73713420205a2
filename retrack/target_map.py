import gc
import sys
import weakref

from .dep import Dep


class TargetMap:
    """
    Collection of dependency records, tracked by the id of the target that
    they belong to. A record holds the Deps for each key of the target and
    a weak reference to the observed view of the target (if any).

    Targets that support weak references (cells, computed values, most
    class instances) are referenced weakly and their record is dropped as
    soon as the target is collected. Plain dicts and lists can't be
    referenced weakly, so the record holds them strongly and drops them
    when the last view of the target is destroyed and nobody else refers
    to the target anymore, or at the end of the next garbage collection.
    """

    __slots__ = ("db",)

    def __init__(self):
        self.db = {}
        gc.callbacks.append(self.cleanup)

    def cleanup(self, phase, info):
        """
        Callback for garbage collector to cleanup the db for targets
        that have no other references outside of the db
        """
        if phase != "stop":
            return

        keys_to_delete = []
        for key, record in self.db.items():
            target = record["target"]
            if isinstance(target, weakref.ref):
                continue
            # Refs:
            # - sys.getrefcount
            # - ref in db record
            if sys.getrefcount(record["target"]) <= 2:
                keys_to_delete.append(key)

        for key in keys_to_delete:
            del self.db[key]

    def clear(self):
        self.db = {}

    def _record(self, target, create=False):
        obj_id = id(target)
        record = self.db.get(obj_id)
        if record is not None or not create:
            return record

        try:
            target_ref = weakref.ref(target)
        except TypeError:
            target_ref = target
        else:
            weakref.finalize(target, self._forget, obj_id, target_ref)
        record = self.db[obj_id] = {
            "target": target_ref,
            "deps": {},
            "proxy": None,
        }
        return record

    def _forget(self, obj_id, target_ref):
        record = self.db.get(obj_id)
        if record is not None and record["target"] is target_ref:
            del self.db[obj_id]

    def dep(self, target, key, create=False) -> Dep | None:
        """
        Returns the Dep for the given target and key. When `create` is
        True, missing records and Deps are created on the fly.
        """
        record = self._record(target, create=create)
        if record is None:
            return None
        deps = record["deps"]
        dep = deps.get(key)
        if dep is None and create:
            dep = deps[key] = Dep()
        return dep

    def has_deps(self, target) -> bool:
        record = self._record(target)
        return record is not None and any(record["deps"].values())

    def reference(self, proxy):
        """
        Registers the given view as the one and only view on its target
        """
        record = self._record(proxy.__target__, create=True)
        existing = record["proxy"]() if record["proxy"] is not None else None
        if existing is not None and existing is not proxy:
            raise RuntimeError("Target is already observed by another view")
        record["proxy"] = weakref.ref(proxy)

    def dereference(self, proxy):
        """
        Removes the view from the db. When the view was the last thing
        keeping the target alive, the whole record is dropped.
        """
        obj_id = id(proxy.__target__)
        record = self.db.get(obj_id)
        if record is None:
            # The db might have been cleared already (see `reset_all`)
            return

        existing = record["proxy"]() if record["proxy"] is not None else None
        if existing is not None and existing is not proxy:
            # a view that failed to register
            return

        record["proxy"] = None
        if isinstance(record["target"], weakref.ref):
            return
        # Ref count is 3 here because of the reference
        # through proxy.__target__
        if sys.getrefcount(record["target"]) <= 3:
            del self.db[obj_id]

    def get_proxy(self, target):
        """
        Returns the view for the given target, or None if the target
        is not observed (anymore).
        """
        record = self.db.get(id(target))
        if record is None or record["proxy"] is None:
            return None
        return record["proxy"]()
