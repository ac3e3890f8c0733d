"""
Static camera set for PlutCam Hub.
The set is fixed when the app is created and never changes afterwards.
"""


class Camera:
    """A pre-registered camera"""

    __slots__ = ('id', 'name')

    def __init__(self, camera_id: str, name: str):
        self.id = camera_id
        self.name = name

    def to_dict(self):
        """Convert to dictionary for API responses"""
        return {'id': self.id, 'name': self.name}

    def __repr__(self):
        return f'<Camera {self.id}>'


class CameraSet:
    """Ordered, read-only collection of the configured cameras"""

    def __init__(self, cameras):
        self._cameras = {c.id: c for c in cameras}

    @classmethod
    def from_config(cls, entries):
        return cls(Camera(e['id'], e['name']) for e in entries)

    def ids(self):
        return list(self._cameras)

    def to_list(self):
        return [c.to_dict() for c in self._cameras.values()]

    def __contains__(self, camera_id):
        return camera_id in self._cameras

    def __len__(self):
        return len(self._cameras)
