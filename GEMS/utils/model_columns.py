# ------------ Model Description Columns ------------ #
region = "Region"
sector = "Sector"
subsector = "Subsector"
technology = "Technology"
parameter = "Parameter"
context = "Context"

# Columns identifying where a row applies, in hierarchy order
location_columns = [region, sector, subsector, technology]
description_columns = location_columns + [parameter, context]
