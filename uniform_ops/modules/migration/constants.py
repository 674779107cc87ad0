from uniform_ops.modules.migration.schemas import MigrationPlan, ReferenceFieldConfig

# Candidate canonical fields on target collections, in priority order
COMPANY_CODE_FIELDS = ("id", "companyId")
VENDOR_CODE_FIELDS = ("id", "vendorId")
EMPLOYEE_CODE_FIELDS = ("id", "employeeId")
LOCATION_CODE_FIELDS = ("id", "locationId")
UNIFORM_CODE_FIELDS = ("id",)


def _ref(path: str, target: str, code_fields: tuple[str, ...] = ("id",)) -> ReferenceFieldConfig:
    return ReferenceFieldConfig(path=path, target_collection=target, code_fields=code_fields)


EMPLOYEES_PLAN = MigrationPlan(
    name="employees",
    collection="employees",
    references=(
        _ref("companyId", "companies", COMPANY_CODE_FIELDS),
        _ref("locationId", "locations", LOCATION_CODE_FIELDS),
        _ref("branchId", "branches"),
    ),
    assign_missing_ids=True,
    description="Employee company, location and branch links",
)

LOCATIONS_PLAN = MigrationPlan(
    name="locations",
    collection="locations",
    references=(_ref("companyId", "companies", COMPANY_CODE_FIELDS),),
    assign_missing_ids=True,
    description="Location owning company",
)

BRANCHES_PLAN = MigrationPlan(
    name="branches",
    collection="branches",
    references=(
        _ref("companyId", "companies", COMPANY_CODE_FIELDS),
        _ref("locationId", "locations", LOCATION_CODE_FIELDS),
    ),
    description="Branch company and location links",
)

PRODUCT_VENDORS_PLAN = MigrationPlan(
    name="productvendors",
    collection="productvendors",
    references=(
        _ref("vendorId", "vendors", VENDOR_CODE_FIELDS),
        _ref("uniformId", "uniforms", UNIFORM_CODE_FIELDS),
    ),
    natural_key=("vendorId", "uniformId"),
    description="Vendor-to-product links; one link per vendor and product",
)

VENDOR_INVENTORIES_PLAN = MigrationPlan(
    name="vendorinventories",
    collection="vendorinventories",
    references=(
        _ref("vendorId", "vendors", VENDOR_CODE_FIELDS),
        _ref("uniformId", "uniforms", UNIFORM_CODE_FIELDS),
    ),
    natural_key=("vendorId", "uniformId"),
    description="Vendor stock records; one record per vendor and product",
)

ORDERS_PLAN = MigrationPlan(
    name="orders",
    collection="orders",
    references=(
        _ref("employeeId", "employees", EMPLOYEE_CODE_FIELDS),
        _ref("companyId", "companies", COMPANY_CODE_FIELDS),
        _ref("vendorId", "vendors", VENDOR_CODE_FIELDS),
        _ref("items.uniformId", "uniforms", UNIFORM_CODE_FIELDS),
    ),
    description="Order owner, company, vendor and line-item product links",
)

COMPANY_ADMINS_PLAN = MigrationPlan(
    name="companyadmins",
    collection="companyadmins",
    references=(
        _ref("companyId", "companies", COMPANY_CODE_FIELDS),
        _ref("employeeId", "employees", EMPLOYEE_CODE_FIELDS),
    ),
    natural_key=("companyId", "employeeId"),
    description="Company administrator assignments",
)

LOCATION_ADMINS_PLAN = MigrationPlan(
    name="locationadmins",
    collection="locationadmins",
    references=(
        _ref("locationId", "locations", LOCATION_CODE_FIELDS),
        _ref("employeeId", "employees", EMPLOYEE_CODE_FIELDS),
    ),
    natural_key=("locationId", "employeeId"),
    description="Location administrator assignments",
)

# Order matters: parents before the collections that reference them
MIGRATION_PLANS: dict[str, MigrationPlan] = {
    plan.name: plan
    for plan in (
        LOCATIONS_PLAN,
        BRANCHES_PLAN,
        EMPLOYEES_PLAN,
        PRODUCT_VENDORS_PLAN,
        VENDOR_INVENTORIES_PLAN,
        ORDERS_PLAN,
        COMPANY_ADMINS_PLAN,
        LOCATION_ADMINS_PLAN,
    )
}
