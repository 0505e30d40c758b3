from __future__ import annotations

import logging

from fxcrowd.core.errors import UnknownSourceError
from fxcrowd.services.base_adapter import SourceAdapter
from fxcrowd.services.dukascopy_adapter import DukascopyAdapter
from fxcrowd.services.forexfactory_adapter import ForexFactoryAdapter
from fxcrowd.services.myfxbook_adapter import MyfxbookAdapter
from fxcrowd.services.oanda_adapter import OandaAdapter

log = logging.getLogger("services.registry")

# Order matters: a full pass runs adapters in this order.
ADAPTER_CLASSES: dict[str, type[SourceAdapter]] = {
    MyfxbookAdapter.name: MyfxbookAdapter,
    OandaAdapter.name: OandaAdapter,
    DukascopyAdapter.name: DukascopyAdapter,
    ForexFactoryAdapter.name: ForexFactoryAdapter,
}


def build_adapters(names, **kwargs) -> list[SourceAdapter]:
    """Instantiate the named adapters in registry order. Unknown names raise UnknownSourceError."""
    wanted = [n.strip().lower() for n in names]
    for n in wanted:
        if n not in ADAPTER_CLASSES:
            raise UnknownSourceError(n)
    adapters = [cls(**kwargs) for name, cls in ADAPTER_CLASSES.items() if name in wanted]
    log.info("adapters enabled: %s", ", ".join(a.name for a in adapters))
    return adapters
