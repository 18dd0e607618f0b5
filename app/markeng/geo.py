"""
Geographic reference data: Indian states and union territories with their
sales zone, principal cities and map coordinates, plus lookups built on it.
"""
from __future__ import annotations

import math
from typing import Any

from app.markeng.constants import ZONE_OTHER

MAP_CENTER = (22.5937, 78.9629)
MAP_ZOOM = 5
MAP_STATE_ZOOM = 7
MARKER_JITTER = 0.05

INDIA_GEO_DATA: dict[str, dict[str, Any]] = {
    "Andaman and Nicobar Islands": {
        "zone": "South",
        "cities": ["Port Blair", "Garacharma", "Bambooflat"],
        "coords": (11.6234, 92.7265),
    },
    "Andhra Pradesh": {
        "zone": "South",
        "cities": ["Visakhapatnam", "Vijayawada", "Guntur", "Nellore", "Tirupati", "Kakinada", "Kurnool", "Rajamahendravaram", "Kadapa", "Anantapur", "Vizianagaram", "Eluru", "Ongole", "Nandyal", "Machilipatnam", "Adoni", "Tenali", "Chittoor", "Hindupur", "Proddatur", "Bhimavaram", "Madanapalle", "Guntakal", "Dharmavaram", "Gudivada", "Srikakulam", "Narasaraopet", "Tadipatri", "Tadepalligudem", "Chilakaluripet"],
        "coords": (15.9129, 79.7400),
    },
    "Arunachal Pradesh": {
        "zone": "East",
        "cities": ["Itanagar", "Tawang", "Ziro", "Naharlagun", "Pasighat", "Roing", "Tezu", "Bomdila", "Khonsa", "Along"],
        "coords": (28.2180, 94.7278),
    },
    "Assam": {
        "zone": "East",
        "cities": ["Guwahati", "Silchar", "Dibrugarh", "Jorhat", "Nagaon", "Tinsukia", "Tezpur", "Bongaigaon", "Dhubri", "Diphu", "North Lakhimpur", "Karimganj", "Sibsagar", "Goalpara", "Barpeta", "Haflong", "Lakhimpur", "Lumding", "Mankachar", "Nalbari", "Rangia", "Sivasagar", "Tangla"],
        "coords": (26.2006, 92.9376),
    },
    "Bihar": {
        "zone": "East",
        "cities": ["Patna", "Gaya", "Bhagalpur", "Muzaffarpur", "Purnia", "Darbhanga", "Arrah", "Begusarai", "Katihar", "Munger", "Chapra", "Saharsa", "Sasaram", "Hajipur", "Dehri", "Bettiah", "Motihari", "Bagaha", "Siwan", "Kishanganj", "Jamalpur", "Buxar", "Jehanabad", "Aurangabad", "Lakhisarai", "Nawada", "Jamui", "Madhubani", "Samastipur", "Sitamarhi"],
        "coords": (25.0961, 85.3131),
    },
    "Chandigarh": {
        "zone": "North",
        "cities": ["Chandigarh"],
        "coords": (30.7333, 76.7794),
    },
    "Chhattisgarh": {
        "zone": "Central",
        "cities": ["Raipur", "Bhilai", "Bilaspur", "Korba", "Durg", "Rajnandgaon", "Jagdalpur", "Ambikapur", "Dhamtari", "Mahasamund", "Champa", "Bhilai Charoda", "Raigarh", "Tilda Newra", "Mungeli", "Manendragarh", "Kanker", "Kondagaon"],
        "coords": (21.2787, 81.8661),
    },
    "Dadra and Nagar Haveli and Daman and Diu": {
        "zone": "West",
        "cities": ["Daman", "Silvassa", "Diu", "Amli"],
        "coords": (20.4283, 72.8397),
    },
    "Delhi": {
        "zone": "North",
        "cities": ["New Delhi", "Delhi Cantonment", "North Delhi", "South Delhi", "West Delhi", "East Delhi", "Dwarka", "Rohini", "Karol Bagh", "Najafgarh", "Narela", "Pitampura", "Saraswati Vihar", "Shahdara", "Yamuna Vihar"],
        "coords": (28.6139, 77.2090),
    },
    "Goa": {
        "zone": "West",
        "cities": ["Panaji", "Vasco da Gama", "Margao", "Mapusa", "Ponda", "Bicholim", "Curchorem", "Mormugao"],
        "coords": (15.2993, 74.1240),
    },
    "Gujarat": {
        "zone": "West",
        "cities": ["Ahmedabad", "Surat", "Vadodara", "Rajkot", "Bhavnagar", "Jamnagar", "Junagadh", "Gandhinagar", "Nadiad", "Anand", "Morbi", "Mehsana", "Surendranagar", "Bharuch", "Vapi", "Navsari", "Veraval", "Porbandar", "Godhra", "Bhuj", "Ankleshwar", "Botad", "Patan", "Palanpur", "Jetpur", "Valsad", "Kalol", "Gondal", "Amreli", "Deesa", "Mundra", "Kadi", "Visnagar", "Himmatnagar"],
        "coords": (22.2587, 71.1924),
    },
    "Haryana": {
        "zone": "North",
        "cities": ["Gurugram", "Faridabad", "Panipat", "Ambala", "Yamunanagar", "Rohtak", "Hisar", "Karnal", "Sonipat", "Panchkula", "Sirsa", "Bhiwani", "Bahadurgarh", "Jind", "Thanesar", "Kaithal", "Rewari", "Palwal", "Hansi", "Narnaul", "Fatehabad", "Gohana", "Mandi Dabwali", "Charkhi Dadri", "Shahbad", "Pehowa", "Ladwa"],
        "coords": (29.0588, 76.0856),
    },
    "Himachal Pradesh": {
        "zone": "North",
        "cities": ["Shimla", "Solan", "Baddi", "Dharamshala", "Mandi", "Palampur", "Nahan", "Paonta Sahib", "Una", "Hamirpur", "Kullu", "Bilaspur", "Chamba", "Dalhousie", "Manali"],
        "coords": (31.1048, 77.1734),
    },
    "Jammu and Kashmir": {
        "zone": "North",
        "cities": ["Srinagar", "Jammu", "Anantnag", "Baramulla", "Kathua", "Sopore", "Samba", "Udhampur", "Reasi", "Rajouri", "Poonch", "Doda", "Bandipora", "Kupwara"],
        "coords": (33.7782, 76.5762),
    },
    "Jharkhand": {
        "zone": "East",
        "cities": ["Ranchi", "Jamshedpur", "Dhanbad", "Bokaro Steel City", "Deoghar", "Phusro", "Hazaribagh", "Giridih", "Ramgarh", "Medininagar", "Chas", "Adityapur", "Gumla", "Dumka", "Chaibasa", "Ghatshila", "Jhumri Telaiya", "Sahibganj", "Pakur"],
        "coords": (23.6102, 85.2799),
    },
    "Karnataka": {
        "zone": "South",
        "cities": ["Bengaluru", "Hubballi-Dharwad", "Mysuru", "Kalaburagi", "Mangaluru", "Belagavi", "Davanagere", "Ballari", "Vijayapura", "Shivamogga", "Tumakuru", "Raichur", "Bidar", "Hosapete", "Gadag-Betageri", "Hassan", "Bhadravati", "Chitradurga", "Udupi", "Kolar", "Mandya", "Chikkamagaluru", "Gangavati", "Bagalkot", "Ranebennuru", "Chamarajanagar", "Sirsi", "Karwar", "Ramanagara", "Yadgir", "Koppal", "Haveri"],
        "coords": (15.3173, 75.7139),
    },
    "Kerala": {
        "zone": "South",
        "cities": ["Kochi", "Thiruvananthapuram", "Kozhikode", "Thrissur", "Kollam", "Alappuzha", "Palakkad", "Kannur", "Kottayam", "Manjeri", "Thalassery", "Ponnani", "Vatakara", "Kanhangad", "Payyanur", "Koyilandy", "Neyyattinkara", "Kayamkulam", "Malappuram", "Guruvayur", "Kasargod", "Changanassery", "Punalur", "Pathanamthitta", "Attingal", "Irinjalakuda", "Chittur-Thathamangalam"],
        "coords": (10.8505, 76.2711),
    },
    "Ladakh": {
        "zone": "North",
        "cities": ["Leh", "Kargil"],
        "coords": (34.1526, 77.5771),
    },
    "Lakshadweep": {
        "zone": "South",
        "cities": ["Kavaratti", "Agatti", "Amini", "Andrott", "Minicoy"],
        "coords": (10.5667, 72.6417),
    },
    "Madhya Pradesh": {
        "zone": "Central",
        "cities": ["Indore", "Bhopal", "Jabalpur", "Gwalior", "Ujjain", "Sagar", "Dewas", "Satna", "Ratlam", "Rewa", "Murwara", "Singrauli", "Burhanpur", "Khandwa", "Bhind", "Chhindwara", "Guna", "Shivpuri", "Vidisha", "Chhatarpur", "Damoh", "Mandsaur", "Khargone", "Neemuch", "Pithampur", "Hoshangabad", "Itarsi", "Sehore", "Betul", "Seoni", "Datia", "Nagda"],
        "coords": (22.9734, 78.6569),
    },
    "Maharashtra": {
        "zone": "West",
        "cities": ["Mumbai", "Pune", "Nagpur", "Thane", "Pimpri-Chinchwad", "Nashik", "Kalyan-Dombivli", "Vasai-Virar", "Aurangabad", "Navi Mumbai", "Solapur", "Mira-Bhayandar", "Bhiwandi-Nizampur", "Amravati", "Nanded-Waghala", "Kolhapur", "Akola", "Ulhasnagar", "Sangli-Miraj-Kupwad", "Jalgaon", "Malegaon", "Ahmednagar", "Latur", "Dhule", "Ichalkaranji", "Chandrapur", "Parbhani", "Satara", "Beed", "Yavatmal", "Gondia", "Ambernath", "Achalpur", "Osmanabad", "Nandurbar", "Wardha", "Udgir", "Hinganghat"],
        "coords": (19.7515, 75.7139),
    },
    "Manipur": {
        "zone": "East",
        "cities": ["Imphal", "Thoubal", "Bishnupur", "Churachandpur", "Senapati", "Ukhrul", "Chandel"],
        "coords": (24.6637, 93.9063),
    },
    "Meghalaya": {
        "zone": "East",
        "cities": ["Shillong", "Tura", "Jowai", "Nongpoh", "Williamnagar", "Baghmara", "Resubelpara"],
        "coords": (25.4670, 91.3662),
    },
    "Mizoram": {
        "zone": "East",
        "cities": ["Aizawl", "Lunglei", "Saiha", "Champhai", "Kolasib", "Serchhip", "Mamit"],
        "coords": (23.1645, 92.9376),
    },
    "Nagaland": {
        "zone": "East",
        "cities": ["Kohima", "Dimapur", "Mokokchung", "Tuensang", "Wokha", "Zunheboto", "Mon", "Phek"],
        "coords": (26.1584, 94.5624),
    },
    "Odisha": {
        "zone": "East",
        "cities": ["Bhubaneswar", "Cuttack", "Rourkela", "Berhampur", "Sambalpur", "Puri", "Balasore", "Bhadrak", "Baripada", "Jharsuguda", "Jeypore", "Anugul", "Bargarh", "Kendujhar", "Bhawanipatna", "Jatni", "Dhenkanal", "Rayagada", "Paradip", "Sunabeda", "Koraput", "Talcher"],
        "coords": (20.9517, 85.0985),
    },
    "Puducherry": {
        "zone": "South",
        "cities": ["Puducherry", "Ozhukarai", "Karaikal", "Mahe", "Yanam"],
        "coords": (11.9416, 79.8083),
    },
    "Punjab": {
        "zone": "North",
        "cities": ["Ludhiana", "Amritsar", "Jalandhar", "Patiala", "Bathinda", "Mohali", "Hoshiarpur", "Batala", "Pathankot", "Moga", "Abohar", "Malerkotla", "Khanna", "Phagwara", "Muktsar", "Barnala", "Rajpura", "Firozpur", "Kapurthala", "Sunam", "Sangrur", "Fazilka", "Gurdaspur", "Nabha", "Tarn Taran", "Zirakpur", "Mans"],
        "coords": (31.1471, 75.3412),
    },
    "Rajasthan": {
        "zone": "West",
        "cities": ["Jaipur", "Jodhpur", "Kota", "Bikaner", "Ajmer", "Udaipur", "Bhilwara", "Alwar", "Bharatpur", "Sikar", "Pali", "Sri Ganganagar", "Beawar", "Tonk", "Hanumangarh", "Kishangarh", "Bhiwadi", "Jhunjhunu", "Sawai Madhopur", "Churu", "Gangapur City", "Hindaun", "Banswara", "Nagaur", "Makrana", "Sujangarh", "Barmer", "Chittorgarh", "Dholpur", "Sardarshahar", "Jhalawar", "Sirohi"],
        "coords": (27.0238, 74.2179),
    },
    "Sikkim": {
        "zone": "East",
        "cities": ["Gangtok", "Namchi", "Gyalshing", "Mangan", "Singtam", "Rangpo", "Nayabazar"],
        "coords": (27.5330, 88.5122),
    },
    "Tamil Nadu": {
        "zone": "South",
        "cities": ["Chennai", "Coimbatore", "Madurai", "Tiruchirappalli", "Salem", "Tiruppur", "Erode", "Vellore", "Thoothukudi", "Dindigul", "Thanjavur", "Ranipet", "Sivakasi", "Karur", "Udhagamandalam", "Hosur", "Nagercoil", "Kancheepuram", "Kumarapalayam", "Karaikudi", "Neyveli", "Cuddalore", "Kumbakonam", "Pollachi", "Rajapalayam", "Gudiyatham", "Pudukkottai", "Vaniyambadi", "Ambur", "Nagapattinam", "Tiruvannamalai", "Namakkal", "Krishnagiri", "Mayiladuthurai"],
        "coords": (11.1271, 78.6569),
    },
    "Telangana": {
        "zone": "South",
        "cities": ["Hyderabad", "Warangal", "Nizamabad", "Khammam", "Karimnagar", "Ramagundam", "Mahbubnagar", "Nalgonda", "Adilabad", "Suryapet", "Miryalaguda", "Siddipet", "Kamareddy", "Mancherial", "Kothagudem", "Jagtial", "Nirmal", "Wanaparthy", "Bhongir", "Vikarabad", "Gajwel", "Sangareddy", "Medak"],
        "coords": (18.1124, 79.0193),
    },
    "Tripura": {
        "zone": "East",
        "cities": ["Agartala", "Udaipur", "Dharmanagar", "Kailasahar", "Ambassa", "Khowai", "Belonia", "Bishalgarh"],
        "coords": (23.9408, 91.9882),
    },
    "Uttar Pradesh": {
        "zone": "North",
        "cities": ["Lucknow", "Kanpur", "Ghaziabad", "Agra", "Meerut", "Varanasi", "Prayagraj", "Bareilly", "Aligarh", "Moradabad", "Saharanpur", "Gorakhpur", "Noida", "Firozabad", "Jhansi", "Muzaffarnagar", "Mathura", "Rampur", "Shahjahanpur", "Farrukhabad", "Mau", "Hapur", "Faizabad", "Etawah", "Mirzapur", "Bulandshahr", "Sambhal", "Amroha", "Hardoi", "Fatehpur", "Raebareli", "Orai", "Sitapur", "Bahraich", "Modinagar", "Unnao", "Jaunpur", "Lakhimpur", "Hathras", "Banda", "Pilibhit", "Greater Noida"],
        "coords": (26.8467, 80.9462),
    },
    "Uttarakhand": {
        "zone": "North",
        "cities": ["Dehradun", "Haridwar", "Roorkee", "Pantnagar", "Haldwani", "Rudrapur", "Kashipur", "Rishikesh", "Srinagar", "Pithoragarh", "Ramnagar", "Manglaur", "Jaspur", "Nainital", "Mussoorie"],
        "coords": (30.0668, 79.0193),
    },
    "West Bengal": {
        "zone": "East",
        "cities": ["Kolkata", "Howrah", "Asansol", "Siliguri", "Durgapur", "Bardhaman", "English Bazar", "Baharampur", "Habra", "Kharagpur", "Shantipur", "Dankuni", "Haldia", "Jalpaiguri", "Balurghat", "Basirhat", "Bankura", "Chakdaha", "Darjeeling", "Alipurduar", "Purulia", "Jangipur", "Bangaon", "Krishnanagar", "Madhyamgram", "Barasat", "Rajpur Sonarpur", "South Dum Dum", "Gopalpur", "Bhatpara", "Panihati", "Kamarhati", "Kulti", "Baranagar", "Serampore"],
        "coords": (22.9868, 87.8550),
    },
}

# Common industrial pincodes; anything else falls back to city inference.
PINCODE_TABLE: dict[str, tuple[str, str]] = {
    "110001": ("New Delhi", "Delhi"),
    "400001": ("Mumbai", "Maharashtra"),
    "560001": ("Bengaluru", "Karnataka"),
    "600001": ("Chennai", "Tamil Nadu"),
    "700001": ("Kolkata", "West Bengal"),
    "500001": ("Hyderabad", "Telangana"),
    "160017": ("Chandigarh", "Chandigarh"),
    "160062": ("Mohali", "Punjab"),
    "141001": ("Ludhiana", "Punjab"),
    "122001": ("Gurugram", "Haryana"),
    "122050": ("Manesar", "Haryana"),
    "380001": ("Ahmedabad", "Gujarat"),
    "360001": ("Rajkot", "Gujarat"),
}

_CITY_INDEX: dict[str, str] = {}
for _state, _info in INDIA_GEO_DATA.items():
    for _city in _info["cities"]:
        _CITY_INDEX.setdefault(_city.lower(), _state)


def states() -> list[str]:
    return sorted(INDIA_GEO_DATA)


def cities_for_state(state: str | None) -> list[str]:
    info = INDIA_GEO_DATA.get(state or "")
    return sorted(info["cities"]) if info else []


def lookup_pincode(pincode: str | None) -> dict[str, str] | None:
    hit = PINCODE_TABLE.get((pincode or "").strip())
    if not hit:
        return None
    return {"city": hit[0], "state": hit[1]}


def infer_state_from_city(city: str | None) -> str | None:
    """Case-insensitive exact match of the city against every state's city list."""
    if not city or not city.strip():
        return None
    return _CITY_INDEX.get(city.strip().lower())


def zone_for_state(state: str | None) -> str | None:
    info = INDIA_GEO_DATA.get(state or "")
    return info["zone"] if info else None


def resolve_zone(zone: str | None, state: str | None, city: str | None) -> str:
    """Explicit zone first, then the state's zone, then the zone of the state owning the city."""
    if zone:
        return zone
    by_state = zone_for_state(state)
    if by_state:
        return by_state
    by_city = zone_for_state(infer_state_from_city(city))
    return by_city or ZONE_OTHER


def resolve_location(*, pincode: str | None, city: str | None, state: str | None) -> tuple[str | None, str | None]:
    """
    Pincode wins when it is known; otherwise a missing state is inferred from the city.
    Returns (city, state); either may still be None.
    """
    hit = lookup_pincode(pincode)
    if hit:
        return hit["city"], hit["state"]
    city = (city or "").strip() or None
    state = (state or "").strip() or None
    if city and not state:
        state = infer_state_from_city(city)
    return city, state


def marker_position(state: str, index: int) -> tuple[float, float] | None:
    """Spread markers around the state centroid so same-state customers do not overlap."""
    info = INDIA_GEO_DATA.get(state)
    if not info:
        return None
    lat, lng = info["coords"]
    return lat + math.sin(index) * MARKER_JITTER, lng + math.cos(index) * MARKER_JITTER
