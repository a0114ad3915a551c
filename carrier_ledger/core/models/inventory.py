"""
Device inventory record schemas per carrier.
"""

from datetime import date

from pydantic import BaseModel

from carrier_ledger.core.carriers import Carrier, Domain
from carrier_ledger.core.models.record import PermanentRecord, StagedRecord


class ATTInventoryFields(BaseModel):
    """AT&T Mobility premier device inventory line."""

    last_updated_date: date | None = None
    foundation_account: str | None = None
    foundation_account_name: str | None = None
    billing_account_number: str | None = None
    billing_account_name: str | None = None
    wireless_number: str | None = None
    wireless_user_name: str | None = None
    device_status: str | None = None
    status_effective_date: date | None = None
    rate_plan_name: str | None = None
    vis_code: str | None = None
    pcn: str | None = None
    asset_tag: str | None = None
    device_type: str | None = None
    device_imei: str | None = None
    device_make: str | None = None
    device_model: str | None = None
    operating_system: str | None = None
    operating_system_version: str | None = None
    imei_software_version: str | None = None
    sim_type: str | None = None
    sim_network: str | None = None
    sim_number_iccid: str | None = None
    rate_plan_soc_name: str | None = None
    group_id: str | None = None
    group_plan_soc_name: str | None = None
    group_line_soc_name: str | None = None
    primary_line: str | None = None
    activation_date: date | None = None
    last_upgrade_date: date | None = None
    upgrade_in_progress: str | None = None
    contract_type: str | None = None
    contract_start_date: date | None = None
    contract_end_date: date | None = None
    contract_term: str | None = None
    contract_status: str | None = None
    email_address: str | None = None
    primary_place_of_use: str | None = None
    device_effective_date: date | None = None
    department: str | None = None


class FirstNetInventoryFields(BaseModel):
    """FirstNet device inventory line."""

    last_updated_date: date | None = None
    foundation_account: str | None = None
    foundation_account_name: str | None = None
    billing_account_number: str | None = None
    billing_account_name: str | None = None
    wireless_number: str | None = None
    wireless_user_name: str | None = None
    device_status: str | None = None
    status_effective_date: date | None = None
    rate_plan_name: str | None = None
    udl2: str | None = None
    udl4: str | None = None
    device_type: str | None = None
    device_imei: str | None = None
    device_make: str | None = None
    device_model: str | None = None
    network_imei_mismatch: str | None = None
    device_imei_network: str | None = None
    device_make_network: str | None = None
    device_model_network: str | None = None
    operating_system: str | None = None
    operating_system_version: str | None = None
    imei_software_version: str | None = None
    sim_type: str | None = None
    sim_network: str | None = None
    sim_number_iccid: str | None = None
    rate_plan_soc_name: str | None = None
    group_id: str | None = None
    group_plan_soc_name: str | None = None
    group_line_soc_name: str | None = None
    primary_line: str | None = None
    activation_date: date | None = None
    last_upgrade_date: date | None = None
    upgrade_in_progress: str | None = None
    contract_type: str | None = None
    contract_start_date: date | None = None
    contract_end_date: date | None = None
    contract_term: str | None = None
    contract_status: str | None = None
    email_address: str | None = None
    primary_place_of_use: str | None = None
    device_effective_date: date | None = None
    department: str | None = None


class VerizonWirelessInventoryFields(BaseModel):
    """Verizon Wireless line-level device and usage inventory."""

    account_name: str | None = None
    account_number: str | None = None
    bill_cycle_date: date | None = None
    cost_center: str | None = None
    department: str | None = None
    email_address: str | None = None
    price_plan_id: str | None = None
    profile_id: str | None = None
    profile_name: str | None = None
    user_id: str | None = None
    user_name: str | None = None
    wireless_number: str | None = None
    connected_device: str | None = None
    cstm_dt_ovol_wirelessnumber_device_euimid: str | None = None
    current_device_id4g_only: str | None = None
    device_sim4g: str | None = None
    device_manufacturer: str | None = None
    device_model: str | None = None
    device_type: str | None = None
    early_upgrade_indicator: str | None = None
    ne2_date: date | None = None
    parent_wireless_number: str | None = None
    sim: str | None = None
    sim_type: str | None = None
    shipped_device_id: str | None = None
    upgrade_eligibility_date: date | None = None
    activation_date: date | None = None
    auto_port_indicator: str | None = None
    device_change_latest_date: date | None = None
    device_change_reason_description: str | None = None
    min_tied_to_wireless_number: str | None = None
    preferred_roam_list: str | None = None
    preferred_roam_list_last_update: str | None = None
    wireless_number_deactivate_description: str | None = None
    wireless_number_disconnect_date: date | None = None
    wireless_number_resume_date: date | None = None
    wireless_number_status: str | None = None
    wireless_number_suspend_date: date | None = None
    wireless_number_suspend_description: str | None = None
    data_access_charge: str | None = None
    data_plan: str | None = None
    data_plan_allowance: str | None = None
    data_plan_code: str | None = None
    price_plan_description: str | None = None
    usage_and_purchase_charges: str | None = None
    voice_access_charge: str | None = None
    voice_allowance: str | None = None
    account_charges: str | None = None
    economic_adjustment_charge: str | None = None
    equipment_charges: str | None = None
    international_charges: str | None = None
    monthly_access_charges: str | None = None
    monthly_non_recurring_charges: str | None = None
    other_charges_and_credits: str | None = None
    phones: str | None = None
    purchase_charges: str | None = None
    taxes_and_surcharges: str | None = None
    third_party_charges: str | None = None
    total_additional_charges: str | None = None
    total_current_charges: str | None = None
    billable_minutes: str | None = None
    long_distance_other_charges: str | None = None
    minutes: str | None = None
    total_allowance_minutes: str | None = None
    total_call_detail: str | None = None
    used_minutes: str | None = None
    additional_charges_data: str | None = None
    additional_services_data_usage: str | None = None
    additional_services_messaging_usage: str | None = None
    current_data_charges: str | None = None
    data_charges_home: str | None = None
    data_overage_charges: str | None = None
    data_usage: str | None = None
    delayed_data_charges: str | None = None
    total_data_usage_charges: str | None = None
    messaging_charges: str | None = None
    mobile_to_mobile_allowance_minutes: str | None = None
    mobile_to_mobile_minutes: str | None = None
    mobile_to_mobile_minutes_total: str | None = None
    mobile_to_mobile_used_minutes: str | None = None


class StagedATTInventory(StagedRecord, ATTInventoryFields):
    carrier = Carrier.ATT
    domain = Domain.INVENTORY
    table_name = "temp_att_inventory"
    business_schema = ATTInventoryFields
    business_key_field = "wireless_number"


class ATTInventory(PermanentRecord, ATTInventoryFields):
    carrier = Carrier.ATT
    domain = Domain.INVENTORY
    table_name = "att_inventory"
    business_schema = ATTInventoryFields


class StagedFirstNetInventory(StagedRecord, FirstNetInventoryFields):
    carrier = Carrier.FIRSTNET
    domain = Domain.INVENTORY
    table_name = "temp_firstnet_inventory"
    business_schema = FirstNetInventoryFields
    business_key_field = "wireless_number"


class FirstNetInventory(PermanentRecord, FirstNetInventoryFields):
    carrier = Carrier.FIRSTNET
    domain = Domain.INVENTORY
    table_name = "firstnet_inventory"
    business_schema = FirstNetInventoryFields


class StagedVerizonWirelessInventory(StagedRecord, VerizonWirelessInventoryFields):
    carrier = Carrier.VERIZON_WIRELESS
    domain = Domain.INVENTORY
    table_name = "temp_verizon_wireless_inventory"
    business_schema = VerizonWirelessInventoryFields
    business_key_field = "wireless_number"


class VerizonWirelessInventory(PermanentRecord, VerizonWirelessInventoryFields):
    carrier = Carrier.VERIZON_WIRELESS
    domain = Domain.INVENTORY
    table_name = "verizon_wireless_inventory"
    business_schema = VerizonWirelessInventoryFields
