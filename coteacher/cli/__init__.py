"""CLI tools for CoTeacher.

- ``python -m coteacher.cli index <material_id>`` -- index a material
- ``python -m coteacher.cli ask <course_id> <question>`` -- course chat
- ``python -m coteacher.cli transcribe <recording_id> <audio_url>`` -- lecture notes
- ``python -m coteacher.cli add-material --course ID --file PATH`` -- seed
  the local SQLite/filesystem backends
"""
