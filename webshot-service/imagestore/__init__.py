from imagestore.storage import ImageStorage, StorageBackendError, ObjectExistsError
