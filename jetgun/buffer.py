import numpy as np
import h5py as h5
from typing import Dict, Any, Tuple, Optional
from abc import ABC, abstractmethod

# Classes for data buffers, used for the columnar jet summary.
# Events are filled one at a time, and periodically flushed to disk.
# We never know up front how many events will make it to the output,
# so the datasets on disk grow with every flush.

def embed_array(array, target_shape,padding_value=0):
    """
    A generic function for embedding an input array into some target shape.
    The array will be truncated or padded as needed.
    """
    result = np.full(target_shape, padding_value, dtype=array.dtype)
    effective_shape = tuple(min(s, t) for s, t in zip(array.shape, target_shape))
    slices = tuple(slice(0, dim) for dim in effective_shape)
    result[slices] = array[slices]
    return result

class BufferFlushHandler(ABC):
    """Abstract base class for handling buffer flush operations."""

    @abstractmethod
    def flush(self, data: Dict[str, np.ndarray], start_event: int, end_event: int):
        """
        Handle flushing of buffer data.

        Args:
            data: Dictionary of numpy arrays to flush
            start_event: Starting event index (inclusive)
            end_event: Ending event index (exclusive)
        """
        pass

class HDF5FlushHandler(BufferFlushHandler):
    """
    Flushes data to an HDF5 file. The file is (re)created on the first flush,
    and appended to afterwards.
    """

    def __init__(self, filename: str, compression_opts:int=9):
        self.filename = filename
        self.status = 'w'
        self.copts = compression_opts
        self.f = None

    def flush(self, data: Dict[str, np.ndarray], start_event: int, end_event: int):
        with h5.File(self.filename,self.status) as f:
            self.f = f
            for key, array in data.items():
                if(key not in f.keys()):
                    dset = self._create_dataset(key,array)
                else:
                    dset = f[key]

                if(dset.shape[0] < end_event):
                    dset.resize(end_event,axis=0)
                if(end_event > start_event):
                    dset[start_event:end_event] = array
        self.f = None
        self.status = 'a'

    def _create_dataset(self,key,array):
        dset_shape = (0,) + array.shape[1:]
        dset = self.f.create_dataset(
            key,
            shape=dset_shape,
            maxshape=(None,) + array.shape[1:],
            dtype=array.dtype,
            chunks=True,
            compression='gzip',
            compression_opts=self.copts,
            track_times=False
        )
        return dset

class Buffer:
    """
    A dictionary-like buffer that maintains fixed-size numpy arrays and
    automatically flushes data when the buffer fills up.
    Every array in the buffer holds one row per event.
    """

    def __init__(self, buffer_size: int = 100, filename=None, flush_handler: Optional[BufferFlushHandler] = None):
        """
        Initialize the buffer.

        Args:
            buffer_size: Maximum number of events to store before flushing
            flush_handler: Handler for flush operations (optional)
        """
        if(buffer_size < 1):
            raise ValueError('Buffer size must be at least 1, got {}.'.format(buffer_size))
        self.filename = filename
        self.buffer_size = buffer_size
        self.flush_handler = flush_handler
        if(self.flush_handler is None):
            self.flush_handler = HDF5FlushHandler(self.filename)

        self._arrays: Dict[str, np.ndarray] = {}
        self._current_size = 0 # number of events currently in buffer
        self._buffer_start_event = 0

    def create_array(self, key: str, shape: Tuple=(), dtype: np.dtype = np.float64):
        """
        Explicitly create an array in the buffer with specified shape and dtype.

        Args:
            key: Array key
            shape: Per-event shape (e.g., (n_jets, 4))
            dtype: Data type for the array
        """
        if(isinstance(shape,int)):
            shape = (shape,)
        if key not in self._arrays:
            self._arrays[key] = np.zeros((self.buffer_size,) + tuple(shape), dtype=dtype)
        return self._arrays[key]

    def __getitem__(self, key: str) -> np.ndarray:
        if key not in self._arrays:
            raise KeyError(f"Key '{key}' not found in buffer")
        return self._arrays[key]

    def __len__(self):
        return self._current_size

    def set(self, key: str, value: Any):
        """
        Sets the value for the event currently being filled.
        Handles embedding/zero-padding as needed.
        """
        array = self[key]
        if(np.ndim(value) == 0):
            array[self._current_size] = value
        else:
            value = np.asarray(value,dtype=array.dtype)
            array[self._current_size] = embed_array(value,array.shape[1:])
        return

    def next_event(self):
        """
        Marks the current event as complete. Flushes the buffer if it is full.
        """
        self._current_size += 1
        if(self._current_size == self.buffer_size):
            self.flush()

    def flush(self, force:bool=False):
        """
        Flush the current buffer contents, and reset the buffer.
        With force=True, the flush handler is called even for an empty buffer
        (so that the output file and its datasets exist regardless).
        """
        if(self._current_size > 0 or force):
            flush_data = {key:array[:self._current_size].copy() for key,array in self._arrays.items()}
            self.flush_handler.flush(
                flush_data,
                self._buffer_start_event,
                self._buffer_start_event + self._current_size
            )
        self._buffer_start_event += self._current_size
        self._current_size = 0
        for array in self._arrays.values():
            array.fill(0)

