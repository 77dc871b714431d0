MAP_IN2INTERNAL = {
"RO": "RO_Number",
"RO/PO": "RO_Number",
"RO Number": "RO_Number",
"Vehicle": "Vehicle",
"Brand": "Brand",
"Estimate Text": "Estimate_Text",
"Estimate": "Estimate_Text",
"Required Calibrations": "Report_Calibrations",
"Calibrations Required": "Report_Calibrations",
"Report Count": "Report_Stated_Count",
"Stated Count": "Report_Stated_Count",
}


ORDER_OUTCOLS = [
"Scrub_Status",
"Estimate_Count", "Report_Count", "Report_Parsed_Count",
"Missing", "Extra",
"Verified", "Need_Review", "Excluded", "Conflicts",
"Compact_Notes", "Preview_Notes", "Summary", "Error",
]
