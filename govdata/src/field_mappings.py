"""
Field Mappings Module
Maps flattened FPDS feed path-keys to output record fields.

The FPDS ATOM feed nests each award several levels deep. After
flattening, every value is addressed by its ancestor tags joined with
``__``. This module centralizes those path-keys so the field mapper and
any documentation helper read the same table.
"""

# Output field -> flattened path-key
CONTRACT_FIELD_MAP = {
    # Essential contract information
    'contract_number': 'content__award__awardID__awardContractID__PIID',
    'title': 'title',
    'link': 'link__href',
    'award_date': 'content__award__relevantContractDates__signedDate',
    'award_amount': 'content__award__dollarValues__obligatedAmount',
    'total_potential_value': 'content__award__dollarValues__baseAndAllOptionsValue',
    'contract_type': 'content__award__contractData__contractActionType__description',
    'project_description': 'content__award__contractData__descriptionOfContractRequirement',
    'naics_code': 'content__award__productOrServiceInformation__principalNAICSCode',
    'naics_description': 'content__award__productOrServiceInformation__principalNAICSCode__description',
    'psc_code': 'content__award__productOrServiceInformation__productOrServiceCode',
    'psc_description': 'content__award__productOrServiceInformation__productOrServiceCode__description',

    # Contracting agency
    'contracting_agency': 'content__award__purchaserInformation__contractingOfficeAgencyID__name',
    'contracting_office_code': 'content__award__purchaserInformation__contractingOfficeID',
    'contracting_office_name': 'content__award__purchaserInformation__contractingOfficeID__name',

    # Vendor
    'vendor_name': 'content__award__vendor__vendorHeader__vendorName',
    'vendor_uei': 'content__award__vendor__vendorSiteDetails__entityIdentifiers__vendorUEIInformation__UEI',
    'business_size': 'content__award__vendor__contractingOfficerBusinessSizeDetermination__description',
    'vendor_city': 'content__award__vendor__vendorSiteDetails__vendorLocation__city',
    'vendor_state': 'content__award__vendor__vendorSiteDetails__vendorLocation__state',
    'sdvosb_status': ('content__award__vendor__vendorSiteDetails__vendorSocioEconomicIndicators'
                      '__isServiceRelatedDisabledVeteranOwnedBusiness'),
    'small_business_status': 'content__award__vendor__vendorSiteDetails__vendorSocioEconomicIndicators__isSmallBusiness',
    'women_owned_status': 'content__award__vendor__vendorSiteDetails__vendorSocioEconomicIndicators__isWomenOwned',

    # Competition
    'competition_extent': 'content__award__competition__extentCompeted__description',
    'set_aside_type': 'content__award__competition__idvTypeOfSetAside__description',
    'number_of_offers': 'content__award__competition__numberOfOffersReceived',
    'solicitation_procedure': 'content__award__competition__solicitationProcedures__description',

    # Performance
    'start_date': 'content__award__relevantContractDates__effectiveDate',
    'end_date': 'content__award__relevantContractDates__currentCompletionDate',
    'performance_state': 'content__award__placeOfPerformance__principalPlaceOfPerformance__stateCode',
    'performance_city': 'content__award__placeOfPerformance__placeOfPerformanceZIPCode__city',

    # Referenced IDV
    'parent_contract_id': 'content__award__awardID__referencedIDVID__PIID',
    'parent_contract_type': 'content__award__contractData__referencedIDVType__description',
}

CONTRACT_HASH_SOURCE = 'Generated from contract_number:award_date'


def get_field_mappings() -> dict:
    """
    Describe where every output field comes from.

    Returns:
        Dictionary of output field -> source path-key (or hash note),
        in output column order
    """
    mappings = {'contract_hash': CONTRACT_HASH_SOURCE}
    mappings.update(CONTRACT_FIELD_MAP)
    return mappings
