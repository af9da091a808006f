from datetime import date

from ust_yieldcurve import DataSourceConfig, YieldCurveDataSource

source = YieldCurveDataSource(DataSourceConfig.from_env())

# Latest published curve (None when nothing is available)
latest = source.resolve()
if latest is not None:
    print(latest.date, latest.provenance.value)
    print(latest.to_frame())

# Curve as of a specific date; served from cache on the next call
print(source.resolve(date(2024, 7, 25)))

# Latest curve plus comparison curves one and two weeks back
for label, curve in source.resolve_with_history().items():
    print(label, curve.date, curve.point("10Y"))

# Cache administration
print(source.cache_info(date(2024, 7, 25)))
source.clear_cache(date(2024, 7, 25))
