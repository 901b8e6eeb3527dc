# Lesson booking: pure scheduling core in ``services``, HTTP surface in ``routes``.
