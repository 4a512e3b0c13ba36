import logging
import typing

from bundlestream.bundle.entry import Entry
from bundlestream.bundle.source import BundleSource
from bundlestream.bundle.sink import BundleSink

log = logging.getLogger(__name__)

Transform = typing.Callable[[Entry], Entry]


async def pipe(source: BundleSource, sink: BundleSink, *transforms: Transform) -> int:
    """
    Stream every entry of `source` through `transforms` into `sink`.

    Returns the number of files written once the sink has finalized. Any
    failure of the source, a transform or the sink aborts the whole pipeline.
    """
    log.debug("piping %s into %s", source, sink)
    try:
        async for entry in source.entries():
            for transform in transforms:
                entry = transform(entry)
            await sink.write(entry)
    except Exception as err:
        await sink.abort(err)
        raise
    finally:
        await source.close()
    return await sink.finished
